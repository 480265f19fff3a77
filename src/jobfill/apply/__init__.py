"""Apply pipeline."""

"""Interactive profile completion."""

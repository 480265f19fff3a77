"""jobfill: resume-to-profile extraction and job application autofill."""

__version__ = "0.1.0"

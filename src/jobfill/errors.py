"""Exception types shared across jobfill.

Only conditions that stop a document, an application attempt or the whole
run are exceptions. Ambiguous extraction, unclassified fields and unmatched
options are reported as data (missing-field tickets, skipped fields).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jobfill.auth.authenticator import AuthResult


class JobfillError(Exception):
    """Base class for jobfill errors."""

    pass


class UnsupportedFormat(JobfillError):
    """Raised when a resume document cannot be decoded to text."""

    def __init__(self, path: str, suffix: str) -> None:
        self.path = path
        self.suffix = suffix
        super().__init__(f"Unsupported resume format '{suffix or '<none>'}' for {path}. Use .pdf, .docx or .txt.")


class ProfileNotFound(JobfillError):
    """Raised when a command needs a stored profile and none exists."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"No profile found at {path}. Run 'jobfill parse-resume' first.")


class AuthenticationFailed(JobfillError):
    """Raised when a site login attempt ends in the terminal failure state."""

    def __init__(self, result: AuthResult) -> None:
        self.result = result
        super().__init__(f"Authentication failed for {result.domain}: {result.reason or 'unknown'}")

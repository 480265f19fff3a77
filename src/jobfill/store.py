"""JSON persistence for the profile and login sessions.

Both files are rewritten whole on every save, through a temp file in the
same directory and ``os.replace``, so a crash never leaves half a file.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

from pydantic import ValidationError

from jobfill import config
from jobfill.errors import ProfileNotFound
from jobfill.models import Profile, Session

log = logging.getLogger(__name__)


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class ProfileStore:
    """Reads and writes ``profile.json`` and ``sessions.json``."""

    def __init__(self, profile_path: Optional[Path] = None, sessions_path: Optional[Path] = None) -> None:
        self.profile_path = Path(profile_path) if profile_path else config.PROFILE_PATH
        self.sessions_path = Path(sessions_path) if sessions_path else config.SESSIONS_PATH

    # -- profile -----------------------------------------------------------

    def has_profile(self) -> bool:
        return self.profile_path.exists()

    def load_profile(self) -> Profile:
        """Load the stored profile.

        Raises:
            ProfileNotFound: if no profile has been saved yet.
            pydantic.ValidationError: if the file does not match the schema.
        """
        if not self.profile_path.exists():
            raise ProfileNotFound(str(self.profile_path))
        return Profile.model_validate_json(self.profile_path.read_text(encoding="utf-8"))

    def save_profile(self, profile: Profile) -> Path:
        _atomic_write(self.profile_path, profile.model_dump_json(indent=2))
        log.info("Profile saved to %s", self.profile_path)
        return self.profile_path

    def backup_profile(self) -> Optional[Path]:
        """Copy the current profile aside before it is replaced wholesale."""
        if not self.profile_path.exists():
            return None
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        backup = self.profile_path.with_name(f"{self.profile_path.stem}.backup-{stamp}.json")
        shutil.copy2(self.profile_path, backup)
        log.info("Backed up existing profile to %s", backup)
        return backup

    # -- sessions ----------------------------------------------------------

    def load_sessions(self) -> dict[str, Session]:
        """Sessions keyed by domain. An unreadable file counts as no sessions."""
        if not self.sessions_path.exists():
            return {}
        try:
            raw = json.loads(self.sessions_path.read_text(encoding="utf-8"))
            sessions = [Session.model_validate(item) for item in raw]
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            log.warning("Ignoring unreadable sessions file %s: %s", self.sessions_path, e)
            return {}
        return {session.domain: session for session in sessions}

    def save_sessions(self, sessions: Mapping[str, Session]) -> None:
        payload = [session.model_dump() for session in sessions.values()]
        _atomic_write(self.sessions_path, json.dumps(payload, indent=2))
        log.debug("Saved %d sessions to %s", len(payload), self.sessions_path)

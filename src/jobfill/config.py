"""Paths, defaults and environment loading for jobfill.

Everything user-specific lives under ``APP_DIR`` (``~/.jobfill`` unless the
``JOBFILL_DIR`` environment variable points elsewhere). Package-shipped
registries live in ``CONFIG_DIR``.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv
from rich.logging import RichHandler

log = logging.getLogger(__name__)


def _app_dir() -> Path:
    raw = os.environ.get("JOBFILL_DIR", "").strip()
    return Path(raw).expanduser() if raw else Path.home() / ".jobfill"


APP_DIR = _app_dir()
PROFILE_PATH = APP_DIR / "profile.json"
SESSIONS_PATH = APP_DIR / "sessions.json"
ENV_PATH = APP_DIR / ".env"
LOG_DIR = APP_DIR / "logs"

CONFIG_DIR = Path(__file__).resolve().parent / "data"

DEFAULTS: dict = {
    # Seconds between applications in batch mode.
    "apply_delay": 5.0,
    "viewport": "1280x800",
    "navigation_timeout_ms": 30_000,
    "max_form_pages": 5,
    "headless": False,
    "user_agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
}


def refresh_paths() -> None:
    """Re-read ``JOBFILL_DIR`` and rebind the module-level paths.

    Paths are resolved at import time; tests and the CLI call this after
    changing the environment.
    """
    global APP_DIR, PROFILE_PATH, SESSIONS_PATH, ENV_PATH, LOG_DIR
    APP_DIR = _app_dir()
    PROFILE_PATH = APP_DIR / "profile.json"
    SESSIONS_PATH = APP_DIR / "sessions.json"
    ENV_PATH = APP_DIR / ".env"
    LOG_DIR = APP_DIR / "logs"


def ensure_dirs() -> None:
    """Create the application directories if missing."""
    for path in (APP_DIR, LOG_DIR):
        path.mkdir(parents=True, exist_ok=True)


def load_env() -> None:
    """Load ``APP_DIR/.env`` into the process environment (never overriding)."""
    if ENV_PATH.exists():
        load_dotenv(ENV_PATH, override=False)


def env_credentials(site_keys) -> dict[str, tuple[str, str]]:
    """Site logins from ``JOBFILL_<SITE>_USERNAME`` / ``JOBFILL_<SITE>_PASSWORD``.

    Only sites with both variables set are returned.
    """
    found = {}
    for key in site_keys:
        prefix = f"JOBFILL_{key.upper().replace('.', '_').replace('-', '_')}"
        username = os.environ.get(f"{prefix}_USERNAME", "").strip()
        password = os.environ.get(f"{prefix}_PASSWORD", "")
        if username and password:
            found[key] = (username, password)
    return found


def setup_logging(verbose: bool = False) -> Path:
    """Log to the console through rich and to a timestamped file in LOG_DIR.

    Returns:
        Path of the log file for this run.
    """
    ensure_dirs()
    stamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
    log_file = LOG_DIR / f"app-{stamp}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s"))
    console_handler = RichHandler(show_path=False, markup=False)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[console_handler, file_handler],
        force=True,
    )
    return log_file

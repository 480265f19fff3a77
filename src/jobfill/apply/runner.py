"""
Apply pipeline: open a posting, sign in if needed, fill the application.

Results use launcher-style status strings: ``applied``, ``dry_run`` or
``failed:<reason>``. Batch mode is a sequential loop over one shared page
and authenticator; a failed job is recorded and the loop moves on.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from jobfill import config
from jobfill.auth.authenticator import AuthResult, SiteAuthenticator
from jobfill.browser import DriverError, PageDriver
from jobfill.errors import AuthenticationFailed, JobfillError
from jobfill.forms.autofill import map_fields
from jobfill.forms.classifier import classify_fields
from jobfill.models import Profile

log = logging.getLogger(__name__)

APPLY_BUTTON_SELECTORS: tuple[str, ...] = (
    'button:has-text("Apply")',
    'a:has-text("Apply")',
    'button:has-text("Apply Now")',
    'a:has-text("Apply Now")',
    '[role="button"]:has-text("Apply")',
    '[role="button"]:has-text("Apply Now")',
    'button:has-text("Easy Apply")',
    'a:has-text("Easy Apply")',
    'button:has-text("Quick Apply")',
    'a:has-text("Quick Apply")',
)

NEXT_PAGE_SELECTORS: tuple[str, ...] = (
    'button:has-text("Next")',
    'button:has-text("Continue")',
    'a:has-text("Next")',
    'a:has-text("Continue")',
)

SUBMIT_SELECTORS: tuple[str, ...] = (
    'button:has-text("Submit Application")',
    'button:has-text("Submit")',
    'button[type="submit"]',
    'input[type="submit"]',
)


@dataclass
class ApplicationResult:
    url: str
    status: str
    message: str
    pages: int = 0
    filled: int = 0
    skipped: int = 0
    auth_trail: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.status.startswith("failed")

    @property
    def reason(self) -> Optional[str]:
        return self.status.split(":", 1)[1] if ":" in self.status else None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["success"] = self.success
        return data


def _failed(url: str, reason: str, message: str, **extra) -> ApplicationResult:
    return ApplicationResult(url=url, status=f"failed:{reason}", message=message, **extra)


def _authenticate(authenticator: SiteAuthenticator, url: str) -> AuthResult:
    auth = authenticator.authenticate(url)
    if not auth.ok:
        raise AuthenticationFailed(auth)
    return auth


def fill_current_page(driver: PageDriver, profile: Profile) -> tuple[int, int]:
    """Fill every mappable control on the page. Returns (filled, skipped)."""
    report = map_fields(profile, classify_fields(driver.collect_fields()))
    filled = 0
    skipped = len(report.skipped)
    for assignment in report.assignments:
        try:
            driver.fill_field(assignment.descriptor, assignment.value)
            filled += 1
        except DriverError as e:
            log.warning("Could not fill %s: %s", assignment.descriptor.describe(), e)
            skipped += 1
    for item in report.skipped:
        log.debug("Skipped %s (%s)", item.descriptor.describe(), item.reason.value)
    return filled, skipped


def apply_to_job(
    driver: PageDriver,
    authenticator: SiteAuthenticator,
    profile: Profile,
    url: str,
    dry_run: bool = False,
    max_pages: Optional[int] = None,
) -> ApplicationResult:
    """Run one application attempt; never raises for per-job problems."""
    max_pages = max_pages or config.DEFAULTS["max_form_pages"]
    log.info("Applying to %s%s", url, " (dry run)" if dry_run else "")
    trail: list[str] = []
    pages = filled = skipped = 0

    try:
        driver.goto(url)
        auth = _authenticate(authenticator, url)
        trail = [state.value for state in auth.trail]

        apply_button = driver.query_visible(APPLY_BUTTON_SELECTORS)
        if apply_button is None:
            return _failed(url, "no_apply_button", "Could not find application button", auth_trail=trail)
        driver.click(apply_button)
        driver.wait_for_load()

        while pages < max_pages:
            pages += 1
            page_filled, page_skipped = fill_current_page(driver, profile)
            filled += page_filled
            skipped += page_skipped
            next_button = driver.query_visible(NEXT_PAGE_SELECTORS)
            if next_button is None:
                break
            driver.click(next_button)
            driver.wait_for_load()

        counts = {"pages": pages, "filled": filled, "skipped": skipped, "auth_trail": trail}
        if dry_run:
            return ApplicationResult(url=url, status="dry_run", message="Form filled, not submitted", **counts)

        submit = driver.query_visible(SUBMIT_SELECTORS)
        if submit is None:
            return _failed(url, "no_submit_button", "Could not find submit button", **counts)
        driver.click(submit)
        driver.wait_for_load()
        return ApplicationResult(url=url, status="applied", message="Application submitted", **counts)

    except AuthenticationFailed as e:
        log.error("%s", e)
        return _failed(
            url,
            "login_issue",
            "Authentication failed",
            auth_trail=[state.value for state in e.result.trail],
        )
    except (DriverError, JobfillError) as e:
        log.error("Error applying to %s: %s", url, e)
        return _failed(url, "error", f"Error: {e}", pages=pages, filled=filled, skipped=skipped, auth_trail=trail)


def batch_apply(
    driver: PageDriver,
    authenticator: SiteAuthenticator,
    profile: Profile,
    urls: Iterable[str],
    dry_run: bool = False,
    delay: Optional[float] = None,
    on_result: Optional[Callable[[int, ApplicationResult], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[ApplicationResult]:
    """Apply to each URL in turn, pausing ``delay`` seconds between jobs.

    Ctrl+C stops the loop; results gathered so far are returned.
    """
    delay = config.DEFAULTS["apply_delay"] if delay is None else delay
    urls = list(urls)
    results: list[ApplicationResult] = []

    for index, url in enumerate(urls):
        try:
            if index:
                sleep(delay)
            result = apply_to_job(driver, authenticator, profile, url, dry_run=dry_run)
        except KeyboardInterrupt:
            log.warning("Batch interrupted after %d of %d jobs", len(results), len(urls))
            break
        except Exception as e:
            log.exception("Unexpected error applying to %s", url)
            result = _failed(url, "error", f"Error: {e}")
        results.append(result)
        if on_result is not None:
            on_result(index, result)

    succeeded = sum(1 for r in results if r.success)
    log.info("Batch done: %d succeeded, %d failed", succeeded, len(results) - succeeded)
    return results


def read_job_urls(path: Path) -> list[str]:
    """One URL per line; blank lines and ``#`` comments are ignored."""
    urls = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            urls.append(line)
    return urls


def write_batch_results(results: Iterable[ApplicationResult], directory: Optional[Path] = None) -> Path:
    directory = directory or config.LOG_DIR
    directory.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
    path = directory / f"batch-results-{stamp}.json"
    path.write_text(json.dumps([r.to_dict() for r in results], indent=2), encoding="utf-8")
    log.info("Batch results saved to %s", path)
    return path

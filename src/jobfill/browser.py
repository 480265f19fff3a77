"""Page driver abstraction over a single browser page.

The authenticator and the apply runner only talk to ``PageDriver``; live
element handles stay inside the driver. Form controls leave it as frozen
``DomFieldDescriptor`` snapshots whose ``ref`` routes a value back to the
element they were taken from.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from jobfill import config
from jobfill.models import DomFieldDescriptor, FieldOption

log = logging.getLogger(__name__)

# Input types that never carry applicant data.
IGNORED_INPUT_TYPES = frozenset({"hidden", "submit", "button", "image", "reset", "file", "password"})

_DESCRIBE_FIELD_JS = """
el => {
    let label = "";
    if (el.id) {
        const byFor = document.querySelector(`label[for="${CSS.escape(el.id)}"]`);
        if (byFor) label = byFor.innerText;
    }
    if (!label) {
        const wrapping = el.closest("label");
        if (wrapping) label = wrapping.innerText;
    }
    if (!label) label = el.getAttribute("aria-label") || "";
    return {
        name: el.getAttribute("name") || "",
        id: el.id || "",
        placeholder: el.getAttribute("placeholder") || "",
        type: (el.getAttribute("type") || "").toLowerCase(),
        label: label.trim(),
        tag: el.tagName.toLowerCase(),
        options: el.tagName === "SELECT"
            ? Array.from(el.options).map(o => ({value: o.value, text: o.text.trim()}))
            : [],
    };
}
"""


class DriverError(Exception):
    """Raised when the page cannot perform a requested action."""

    pass


class PageDriver(ABC):
    """Abstract base class for the single page jobfill drives.

    Implementations raise DriverError for failed actions so callers only
    need to handle one exception type.
    """

    @abstractmethod
    def goto(self, url: str) -> None:
        """Navigate to ``url`` and wait for the document to load."""
        ...

    @abstractmethod
    def query_visible(self, selectors: Sequence[str]) -> Optional[str]:
        """Return the first selector that matches a visible element, or None."""
        ...

    @abstractmethod
    def fill(self, selector: str, value: str) -> None:
        ...

    @abstractmethod
    def click(self, selector: str) -> None:
        ...

    @abstractmethod
    def wait_for_load(self) -> None:
        """Wait until navigation triggered by the last action settles."""
        ...

    @abstractmethod
    def wait_for(self, selector: str, timeout_ms: int) -> bool:
        """Wait for ``selector`` to become visible; False on timeout."""
        ...

    @abstractmethod
    def current_url(self) -> str:
        ...

    @abstractmethod
    def current_cookies(self) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    def add_cookies(self, cookies: Sequence[dict[str, Any]]) -> None:
        ...

    @abstractmethod
    def collect_fields(self) -> list[DomFieldDescriptor]:
        """Snapshot the visible form controls on the page, in document order."""
        ...

    @abstractmethod
    def fill_field(self, descriptor: DomFieldDescriptor, value: str) -> None:
        """Write ``value`` into the control ``descriptor`` was taken from."""
        ...

    def close(self) -> None:
        pass

    def __enter__(self) -> "PageDriver":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def parse_viewport(value: str) -> dict[str, int]:
    """Parse "1280x800" into Playwright's viewport mapping."""
    width, _, height = value.lower().partition("x")
    return {"width": int(width), "height": int(height)}


class PlaywrightDriver(PageDriver):
    """Chromium page driven through ``playwright.sync_api``."""

    def __init__(
        self,
        headless: Optional[bool] = None,
        viewport: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self.headless = config.DEFAULTS["headless"] if headless is None else headless
        self.viewport = parse_viewport(viewport or config.DEFAULTS["viewport"])
        self.timeout_ms = timeout_ms or config.DEFAULTS["navigation_timeout_ms"]
        self.user_agent = user_agent or config.DEFAULTS["user_agent"]
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None
        self._fields: list[Any] = []

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> "PlaywrightDriver":
        if self._page is not None:
            return self
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self.headless)
        self._context = self._browser.new_context(viewport=self.viewport, user_agent=self.user_agent)
        self._context.set_default_timeout(self.timeout_ms)
        self._page = self._context.new_page()
        log.debug("Browser started (headless=%s)", self.headless)
        return self

    def close(self) -> None:
        for closer in (self._context, self._browser):
            if closer is not None:
                try:
                    closer.close()
                except PlaywrightError as e:
                    log.debug("Ignoring error while closing browser: %s", e)
        if self._playwright is not None:
            self._playwright.stop()
        self._playwright = self._browser = self._context = self._page = None
        self._fields = []

    def __enter__(self) -> "PlaywrightDriver":
        return self.start()

    @property
    def page(self):
        if self._page is None:
            raise DriverError("Browser not started")
        return self._page

    # -- navigation --------------------------------------------------------

    def goto(self, url: str) -> None:
        try:
            self.page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError as e:
            raise DriverError(f"Navigation to {url} failed: {e}") from e
        self._fields = []

    def wait_for_load(self) -> None:
        try:
            self.page.wait_for_load_state("networkidle", timeout=self.timeout_ms)
        except PlaywrightTimeoutError:
            # Pages with long-polling never go idle; the DOM is usable anyway.
            log.debug("Timed out waiting for network idle on %s", self.page.url)

    def wait_for(self, selector: str, timeout_ms: int) -> bool:
        try:
            self.page.wait_for_selector(selector, state="visible", timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    def current_url(self) -> str:
        return self.page.url

    # -- elements ----------------------------------------------------------

    def query_visible(self, selectors: Sequence[str]) -> Optional[str]:
        for selector in selectors:
            try:
                if self.page.locator(selector).first.is_visible():
                    return selector
            except PlaywrightError as e:
                log.debug("Selector %s not usable: %s", selector, e)
        return None

    def fill(self, selector: str, value: str) -> None:
        try:
            self.page.locator(selector).first.fill(value)
        except PlaywrightError as e:
            raise DriverError(f"Could not fill {selector}: {e}") from e

    def click(self, selector: str) -> None:
        try:
            self.page.locator(selector).first.click()
        except PlaywrightError as e:
            raise DriverError(f"Could not click {selector}: {e}") from e

    # -- cookies -----------------------------------------------------------

    def current_cookies(self) -> list[dict[str, Any]]:
        return [dict(cookie) for cookie in self.page.context.cookies()]

    def add_cookies(self, cookies: Sequence[dict[str, Any]]) -> None:
        try:
            self.page.context.add_cookies(list(cookies))
        except PlaywrightError as e:
            raise DriverError(f"Could not restore cookies: {e}") from e

    # -- forms -------------------------------------------------------------

    def collect_fields(self) -> list[DomFieldDescriptor]:
        self._fields = []
        descriptors = []
        for handle in self.page.query_selector_all("input, select, textarea"):
            try:
                if not handle.is_visible():
                    continue
                info = handle.evaluate(_DESCRIBE_FIELD_JS)
            except PlaywrightError as e:
                log.debug("Skipping detached form control: %s", e)
                continue
            if info["tag"] == "input" and info["type"] in IGNORED_INPUT_TYPES:
                continue
            descriptors.append(
                DomFieldDescriptor(
                    name=info["name"],
                    id=info["id"],
                    placeholder=info["placeholder"],
                    type=info["type"],
                    label=info["label"],
                    tag_name=info["tag"],
                    options=tuple(FieldOption(o["value"], o["text"]) for o in info["options"]),
                    ref=len(self._fields),
                )
            )
            self._fields.append(handle)
        log.debug("Collected %d form fields on %s", len(descriptors), self.page.url)
        return descriptors

    def fill_field(self, descriptor: DomFieldDescriptor, value: str) -> None:
        if not 0 <= descriptor.ref < len(self._fields):
            raise DriverError(f"Field {descriptor.describe()} is not on the current page")
        handle = self._fields[descriptor.ref]
        try:
            if descriptor.is_enumerated:
                handle.select_option(value=value)
            else:
                handle.fill(value)
        except PlaywrightError as e:
            raise DriverError(f"Could not fill {descriptor.describe()}: {e}") from e

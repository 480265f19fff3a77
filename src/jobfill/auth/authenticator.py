"""
Per-site authentication state machine.

    UNCHECKED -> NOT_REQUIRED
              -> REQUIRES_AUTH -> SESSION_LOOKUP -> AUTHENTICATED
                                                 -> NEEDS_LOGIN -> STRATEGY_SELECT
                                                    -> KNOWN_SITE_FLOW | GENERIC_FLOW
                                                    -> AUTHENTICATED | FAILURE

Every attempt returns an AuthResult with the states it passed through.
FAILURE is terminal for the attempt; nothing is retried inside it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Protocol

from jobfill.auth.sites import GENERIC, KnownSite, credential_keys, host_of, select_strategy, session_key
from jobfill.browser import DriverError, PageDriver
from jobfill.models import Credential, Session

log = logging.getLogger(__name__)


class AuthState(str, Enum):
    UNCHECKED = "unchecked"
    NOT_REQUIRED = "not_required"
    REQUIRES_AUTH = "requires_auth"
    SESSION_LOOKUP = "session_lookup"
    AUTHENTICATED = "authenticated"
    NEEDS_LOGIN = "needs_login"
    STRATEGY_SELECT = "strategy_select"
    KNOWN_SITE_FLOW = "known_site_flow"
    GENERIC_FLOW = "generic_flow"
    FAILURE = "failure"


@dataclass
class AuthResult:
    domain: str
    state: AuthState = AuthState.UNCHECKED
    strategy: Optional[str] = None
    reason: Optional[str] = None
    trail: list[AuthState] = field(default_factory=lambda: [AuthState.UNCHECKED])

    @property
    def ok(self) -> bool:
        return self.state in (AuthState.AUTHENTICATED, AuthState.NOT_REQUIRED)

    def advance(self, state: AuthState, reason: Optional[str] = None) -> "AuthResult":
        self.state = state
        self.trail.append(state)
        if reason:
            self.reason = reason
        return self


class SessionStore(Protocol):
    def load_sessions(self) -> dict[str, Session]: ...

    def save_sessions(self, sessions: Mapping[str, Session]) -> None: ...


# ---------------------------------------------------------------------------
# Selector tables
# ---------------------------------------------------------------------------

LOGGED_OUT_INDICATORS: tuple[str, ...] = (
    'button:has-text("Sign In")',
    'a:has-text("Sign In")',
    'button:has-text("Log In")',
    'a:has-text("Log In")',
)

LOGIN_INDICATORS: tuple[str, ...] = LOGGED_OUT_INDICATORS + (
    'form[action*="login"]',
    'form[action*="signin"]',
    'input[name="username"]',
    'input[name="email"]',
    'input[name="password"]',
    'input[type="password"]',
)

LOGGED_IN_INDICATORS: tuple[str, ...] = (
    '[aria-label="Profile"]',
    '[aria-label="Account"]',
    ".user-profile",
    ".user-avatar",
    ".profile-menu",
)

GENERIC_USERNAME_SELECTORS: tuple[str, ...] = (
    'input[type="email"]',
    'input[name="email"]',
    'input[id="email"]',
    'input[name="username"]',
    'input[id="username"]',
    'input[name="user"]',
    'input[id="user"]',
)

GENERIC_PASSWORD_SELECTORS: tuple[str, ...] = (
    'input[type="password"]',
    'input[name="password"]',
    'input[id="password"]',
    'input[name="pwd"]',
    'input[id="pwd"]',
)

GENERIC_SUBMIT_SELECTORS: tuple[str, ...] = (
    'button[type="submit"]',
    'input[type="submit"]',
    'button:has-text("Sign In")',
    'button:has-text("Log In")',
    'button:has-text("Login")',
    'a:has-text("Sign In")',
    'a:has-text("Log In")',
)

# How long a two-step login waits for the password field to appear.
TWO_STEP_TIMEOUT_MS = 10_000


class SiteAuthenticator:
    """Decides whether the current page needs a login and runs one if so.

    Args:
        driver: Page the job posting is open in.
        sessions: Store the session map is loaded from and saved back to.
        credentials: Credentials keyed by site key ("linkedin") or host name.
        registry: Known sites, in strategy priority order.
    """

    def __init__(
        self,
        driver: PageDriver,
        sessions: SessionStore,
        credentials: Mapping[str, Credential],
        registry: Mapping[str, KnownSite],
    ) -> None:
        self.driver = driver
        self.store = sessions
        self.credentials = dict(credentials)
        self.registry = dict(registry)
        self.sessions: dict[str, Session] = sessions.load_sessions()

    # -- public ------------------------------------------------------------

    def restore_sessions(self) -> int:
        """Push every persisted session cookie into the browser context."""
        cookies = [session.cookie for session in self.sessions.values() if session.cookie]
        if cookies:
            self.driver.add_cookies(cookies)
        log.info("Restored %d saved sessions", len(cookies))
        return len(cookies)

    def login_required(self) -> bool:
        return self.driver.query_visible(LOGIN_INDICATORS) is not None

    def authenticate(self, url: str) -> AuthResult:
        result = AuthResult(domain=session_key(url, self.registry))
        try:
            self._run(url, result)
        except DriverError as e:
            log.warning("Login for %s aborted: %s", result.domain, e)
            result.advance(AuthState.FAILURE, str(e))
        log.info("Authentication for %s: %s", result.domain, result.state.value)
        return result

    # -- state machine -----------------------------------------------------

    def _run(self, url: str, result: AuthResult) -> None:
        if not self.login_required():
            result.advance(AuthState.NOT_REQUIRED)
            return
        result.advance(AuthState.REQUIRES_AUTH)

        result.advance(AuthState.SESSION_LOOKUP)
        session = self.sessions.get(result.domain)
        if session is not None and self._session_valid():
            log.info("Reusing saved session for %s", result.domain)
            result.advance(AuthState.AUTHENTICATED)
            return
        result.advance(AuthState.NEEDS_LOGIN)

        result.advance(AuthState.STRATEGY_SELECT)
        result.strategy = select_strategy(url, self.registry)
        if result.strategy == GENERIC:
            result.advance(AuthState.GENERIC_FLOW)
            reason = self._generic_login(url, result.domain)
        else:
            result.advance(AuthState.KNOWN_SITE_FLOW)
            reason = self._known_site_login(self.registry[result.strategy], url)

        if reason is not None:
            result.advance(AuthState.FAILURE, reason)
            return
        result.advance(AuthState.AUTHENTICATED)

        if self.driver.current_url().rstrip("/") != url.rstrip("/"):
            self.driver.goto(url)

    def _session_valid(self) -> bool:
        """Logged-out indicator wins, then a logged-in indicator; neither means invalid."""
        if self.driver.query_visible(LOGGED_OUT_INDICATORS) is not None:
            return False
        return self.driver.query_visible(LOGGED_IN_INDICATORS) is not None

    def _credential_for(self, url: str) -> Optional[Credential]:
        for key in credential_keys(url, self.registry):
            if key in self.credentials:
                return self.credentials[key]
        return None

    def _store_session(self, domain: str, username: str, cookie: Optional[dict[str, Any]], low_confidence: bool) -> None:
        self.sessions[domain] = Session(domain=domain, username=username, cookie=cookie, low_confidence=low_confidence)
        self.store.save_sessions(self.sessions)

    # -- flows -------------------------------------------------------------
    # Each flow returns None on success or the failure reason.

    def _known_site_login(self, site: KnownSite, url: str) -> Optional[str]:
        credential = self._credential_for(url)
        if credential is None:
            return f"no credentials for {site.key}"

        if site.login_url_marker not in self.driver.current_url():
            self.driver.goto(site.login_url)

        username = self.driver.query_visible(site.username_selectors)
        if username is None:
            return "username field not found"
        self.driver.fill(username, credential.username)

        if site.two_step:
            submit = self.driver.query_visible(site.submit_selectors)
            if submit is None:
                return "submit button not found"
            self.driver.click(submit)
            if not any(self.driver.wait_for(s, TWO_STEP_TIMEOUT_MS) for s in site.password_selectors):
                return "password field did not appear"

        password = self.driver.query_visible(site.password_selectors)
        if password is None:
            return "password field not found"
        self.driver.fill(password, credential.password)

        submit = self.driver.query_visible(site.submit_selectors)
        if submit is None:
            return "submit button not found"
        self.driver.click(submit)
        self.driver.wait_for_load()

        if self.driver.query_visible((site.logged_in_marker,)) is None:
            return "logged-in marker not found after submit"

        cookie = next((c for c in self.driver.current_cookies() if c.get("name") == site.session_cookie), None)
        if cookie is None:
            log.warning("Logged in to %s but session cookie %s is missing", site.key, site.session_cookie)
        self._store_session(site.domain, credential.username, cookie, low_confidence=False)
        return None

    def _generic_login(self, url: str, domain: str) -> Optional[str]:
        credential = self._credential_for(url)
        if credential is None:
            return f"no credentials for {host_of(url)}"

        # Resolve everything before touching the page.
        username = self.driver.query_visible(GENERIC_USERNAME_SELECTORS)
        password = self.driver.query_visible(GENERIC_PASSWORD_SELECTORS)
        submit = self.driver.query_visible(GENERIC_SUBMIT_SELECTORS)
        missing = [name for name, sel in (("username", username), ("password", password), ("submit", submit)) if sel is None]
        if missing:
            return f"login form incomplete: no {', '.join(missing)} element"

        self.driver.fill(username, credential.username)
        self.driver.fill(password, credential.password)
        self.driver.click(submit)
        self.driver.wait_for_load()

        if self.login_required():
            return "login indicators still present after submit"

        # The site's session cookie name is unknown; keep the first cookie as a marker.
        cookies = self.driver.current_cookies()
        self._store_session(domain, credential.username, cookies[0] if cookies else None, low_confidence=True)
        return None

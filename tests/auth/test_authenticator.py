"""Tests for the authentication state machine.

@file test_authenticator.py
@description Drives SiteAuthenticator through every terminal state with a
             scripted page driver. Offline and deterministic.
"""

from __future__ import annotations

import pytest

from jobfill.auth.authenticator import AuthState, SiteAuthenticator
from jobfill.auth.sites import load_sites
from jobfill.browser import DriverError
from jobfill.models import Credential, Session
from jobfill.store import ProfileStore

S = AuthState
JOB_URL = "https://careers.example.com/jobs/42"
LINKEDIN_JOB = "https://www.linkedin.com/jobs/view/42"
GENERIC_FORM = {'input[name="email"]', 'input[type="password"]', 'button[type="submit"]'}


@pytest.fixture
def store():
    return ProfileStore()


def _authenticator(driver, store, credentials=None):
    return SiteAuthenticator(driver, store, credentials or {}, load_sites())


# ---------------------------------------------------------------------------
# 1. Login detection and session reuse
# ---------------------------------------------------------------------------


class TestLoginDetection:
    def test_no_indicator_means_not_required(self, fake_driver, store):
        result = _authenticator(fake_driver(url=JOB_URL), store).authenticate(JOB_URL)
        assert result.state is S.NOT_REQUIRED
        assert result.ok
        assert result.trail == [S.UNCHECKED, S.NOT_REQUIRED]

    def test_visible_password_input_requires_login(self, fake_driver, store):
        driver = fake_driver(url=JOB_URL, visible={'input[type="password"]'})
        assert _authenticator(driver, store).login_required()


class TestSessionLookup:
    def test_valid_session_is_reused(self, fake_driver, store):
        store.save_sessions({"careers.example.com": Session(domain="careers.example.com", username="jane")})
        driver = fake_driver(url=JOB_URL, visible={'input[type="password"]', ".user-profile"})
        result = _authenticator(driver, store).authenticate(JOB_URL)
        assert result.state is S.AUTHENTICATED
        assert result.trail == [S.UNCHECKED, S.REQUIRES_AUTH, S.SESSION_LOOKUP, S.AUTHENTICATED]
        assert driver.kinds("fill") == []

    def test_logged_out_indicator_beats_logged_in_indicator(self, fake_driver, store):
        store.save_sessions({"careers.example.com": Session(domain="careers.example.com", username="jane")})
        driver = fake_driver(url=JOB_URL, visible={'a:has-text("Sign In")', ".user-profile"})
        result = _authenticator(driver, store).authenticate(JOB_URL)
        assert S.NEEDS_LOGIN in result.trail

    def test_no_indicator_either_way_is_invalid(self, fake_driver, store):
        store.save_sessions({"careers.example.com": Session(domain="careers.example.com", username="jane")})
        driver = fake_driver(url=JOB_URL, visible={'form[action*="login"]'})
        result = _authenticator(driver, store).authenticate(JOB_URL)
        assert S.NEEDS_LOGIN in result.trail
        assert result.state is S.FAILURE

    def test_restore_sessions_pushes_cookies(self, fake_driver, store):
        cookie = {"name": "li_at", "value": "abc", "domain": ".linkedin.com", "path": "/"}
        store.save_sessions(
            {
                "linkedin.com": Session(domain="linkedin.com", username="jane", cookie=cookie),
                "example.com": Session(domain="example.com", username="jane"),
            }
        )
        driver = fake_driver()
        assert _authenticator(driver, store).restore_sessions() == 1
        assert driver.added_cookies == [cookie]


# ---------------------------------------------------------------------------
# 2. Generic flow
# ---------------------------------------------------------------------------


class TestGenericFlow:
    def test_missing_credential_fails(self, fake_driver, store):
        driver = fake_driver(url=JOB_URL, visible=GENERIC_FORM)
        result = _authenticator(driver, store).authenticate(JOB_URL)
        assert result.state is S.FAILURE
        assert result.strategy == "generic"
        assert "no credentials" in result.reason
        assert driver.kinds("fill") == []

    def test_incomplete_form_fails_before_any_fill(self, fake_driver, store):
        driver = fake_driver(url=JOB_URL, visible={'input[type="password"]'})
        credentials = {"careers.example.com": Credential(username="jane", password="s3cret")}
        result = _authenticator(driver, store, credentials).authenticate(JOB_URL)
        assert result.state is S.FAILURE
        assert result.trail[-2:] == [S.GENERIC_FLOW, S.FAILURE]
        assert "username" in result.reason and "submit" in result.reason
        assert driver.kinds("fill") == []
        assert driver.kinds("click") == []

    def test_success_stores_low_confidence_session(self, fake_driver, store):
        driver = fake_driver(url=JOB_URL, visible=GENERIC_FORM, cookies=[{"name": "sid", "value": "1"}])
        driver.on_click['button[type="submit"]'] = lambda d: d.visible.clear()
        credentials = {"careers.example.com": Credential(username="jane", password="s3cret")}

        result = _authenticator(driver, store, credentials).authenticate(JOB_URL)

        assert result.state is S.AUTHENTICATED
        assert result.trail == [
            S.UNCHECKED,
            S.REQUIRES_AUTH,
            S.SESSION_LOOKUP,
            S.NEEDS_LOGIN,
            S.STRATEGY_SELECT,
            S.GENERIC_FLOW,
            S.AUTHENTICATED,
        ]
        assert driver.kinds("fill") == [
            ("fill", 'input[name="email"]', "jane"),
            ("fill", 'input[type="password"]', "s3cret"),
        ]
        saved = ProfileStore().load_sessions()["careers.example.com"]
        assert saved.low_confidence is True
        assert saved.cookie == {"name": "sid", "value": "1"}

    def test_indicators_still_present_after_submit_fails(self, fake_driver, store):
        driver = fake_driver(url=JOB_URL, visible=GENERIC_FORM)
        credentials = {"careers.example.com": Credential(username="jane", password="bad")}
        result = _authenticator(driver, store, credentials).authenticate(JOB_URL)
        assert result.state is S.FAILURE
        assert store.load_sessions() == {}


# ---------------------------------------------------------------------------
# 3. Known-site flows
# ---------------------------------------------------------------------------


def _linkedin_driver(fake_driver, logged_in: bool = True):
    driver = fake_driver(
        url=LINKEDIN_JOB,
        visible={'a:has-text("Sign In")'},
        cookies=[
            {"name": "JSESSIONID", "value": "x"},
            {"name": "li_at", "value": "token", "domain": ".linkedin.com", "path": "/"},
        ],
    )
    driver.on_goto["https://www.linkedin.com/login"] = lambda d: d.visible.update(
        {"input#username", "input#password", 'button[type="submit"]'}
    )
    after = {".global-nav__me-photo"} if logged_in else set()
    driver.on_click['button[type="submit"]'] = lambda d: setattr(d, "visible", set(after))
    return driver


class TestKnownSiteFlow:
    def test_linkedin_login_saves_named_cookie(self, fake_driver, store):
        driver = _linkedin_driver(fake_driver)
        credentials = {"linkedin": Credential(username="jane@example.com", password="pw")}

        result = _authenticator(driver, store, credentials).authenticate(LINKEDIN_JOB)

        assert result.state is S.AUTHENTICATED
        assert result.strategy == "linkedin"
        assert S.KNOWN_SITE_FLOW in result.trail
        session = store.load_sessions()["linkedin.com"]
        assert session.cookie["name"] == "li_at"
        assert session.low_confidence is False
        # Back on the posting after logging in.
        assert driver.actions[0] == ("goto", "https://www.linkedin.com/login")
        assert driver.actions[-1] == ("goto", LINKEDIN_JOB)

    def test_already_on_login_page_skips_navigation(self, fake_driver, store):
        login_url = "https://www.linkedin.com/login?session_redirect=x"
        driver = fake_driver(
            url=login_url,
            visible={'a:has-text("Sign In")', "input#username", "input#password", 'button[type="submit"]'},
        )
        driver.on_click['button[type="submit"]'] = lambda d: setattr(d, "visible", {".global-nav__me-photo"})
        credentials = {"linkedin": Credential(username="jane", password="pw")}

        result = _authenticator(driver, store, credentials).authenticate(login_url)

        assert result.state is S.AUTHENTICATED
        assert driver.kinds("goto") == []

    def test_missing_logged_in_marker_fails(self, fake_driver, store):
        driver = _linkedin_driver(fake_driver, logged_in=False)
        credentials = {"linkedin": Credential(username="jane", password="wrong")}
        result = _authenticator(driver, store, credentials).authenticate(LINKEDIN_JOB)
        assert result.state is S.FAILURE
        assert "marker" in result.reason
        assert store.load_sessions() == {}

    def test_indeed_two_step(self, fake_driver, store):
        job = "https://www.indeed.com/viewjob?jk=1"
        driver = fake_driver(url=job, visible={'button:has-text("Sign In")'}, cookies=[{"name": "JSESSIONID", "value": "v"}])
        driver.on_goto["https://www.indeed.com/account/login"] = lambda d: d.visible.update(
            {'input[name="email"]', 'button[type="submit"]'}
        )

        def submit(d):
            if 'input[name="password"]' in d.visible:
                d.visible = {".gnav-menu"}
            else:
                d.visible.add('input[name="password"]')

        driver.on_click['button[type="submit"]'] = submit
        credentials = {"indeed": Credential(username="jane@example.com", password="pw")}

        result = _authenticator(driver, store, credentials).authenticate(job)

        assert result.state is S.AUTHENTICATED
        assert len(driver.kinds("click")) == 2
        assert store.load_sessions()["indeed.com"].cookie == {"name": "JSESSIONID", "value": "v"}


class TestDriverErrors:
    def test_driver_error_becomes_failure(self, fake_driver, store):
        driver = _linkedin_driver(fake_driver)

        def broken(d):
            raise DriverError("net::ERR_CONNECTION_RESET")

        driver.on_goto["https://www.linkedin.com/login"] = broken
        credentials = {"linkedin": Credential(username="jane", password="pw")}
        result = _authenticator(driver, store, credentials).authenticate(LINKEDIN_JOB)
        assert result.state is S.FAILURE
        assert "ERR_CONNECTION_RESET" in result.reason

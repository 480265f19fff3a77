"""Shared fixtures for the jobfill test suite.

@file conftest.py
@description Isolates JOBFILL_DIR per test and provides a scriptable page
             driver. No network, no real browser.
"""

from __future__ import annotations

import os
from typing import Any, Callable, Iterable, Optional, Sequence

import pytest

from jobfill import config
from jobfill.browser import PageDriver
from jobfill.models import DomFieldDescriptor

SAMPLE_RESUME = """\
Jane Q Public
San Francisco, CA
jane.public@example.com | (415) 555-0123
linkedin.com/in/janepublic
US Citizen

SUMMARY
Backend engineer with a focus on data platforms.

EXPERIENCE
Senior Software Engineer
Acme Corp | 2019 - Present
- Built the ingestion pipeline
- Led a team of four

Software Engineer
Beta Systems | 2015 - 2019
- Maintained billing services

EDUCATION
Stanford University
M.S. Computer Science, 2013 - 2015
GPA: 3.9/4.0

SKILLS
Python, Go, PostgreSQL
Tools: Docker, Kubernetes

LANGUAGES
English (Native)
Spanish - Fluent

CERTIFICATIONS
AWS Certified Solutions Architect, issued by Amazon Web Services, 2021
"""


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Ensure every test gets a clean environment.

    - Points JOBFILL_DIR to a temp directory to avoid touching real data.
    - Drops any JOBFILL_* credential variables from the outer shell.
    - Rebinds the config paths to the new directory.
    """
    for name in list(os.environ):
        if name.startswith("JOBFILL_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JOBFILL_DIR", str(tmp_path / "jobfill"))
    (tmp_path / "jobfill" / "logs").mkdir(parents=True, exist_ok=True)
    config.refresh_paths()


@pytest.fixture
def sample_resume() -> str:
    return SAMPLE_RESUME


class FakeDriver(PageDriver):
    """In-memory page: a set of visible selectors plus hooks for navigation and clicks.

    ``on_click`` / ``on_goto`` map a selector / URL to a callable receiving the
    driver, so a test can change what is visible in response to an action.
    """

    def __init__(
        self,
        url: str = "https://example.com/jobs/1",
        visible: Iterable[str] = (),
        cookies: Optional[list[dict[str, Any]]] = None,
        fields: Sequence[DomFieldDescriptor] = (),
    ) -> None:
        self.url = url
        self.visible = set(visible)
        self.cookies = list(cookies or [])
        self.fields = list(fields)
        self.actions: list[tuple] = []
        self.added_cookies: list[dict[str, Any]] = []
        self.filled_fields: list[tuple[DomFieldDescriptor, str]] = []
        self.on_click: dict[str, Callable[["FakeDriver"], None]] = {}
        self.on_goto: dict[str, Callable[["FakeDriver"], None]] = {}

    def goto(self, url: str) -> None:
        self.actions.append(("goto", url))
        self.url = url
        if url in self.on_goto:
            self.on_goto[url](self)

    def query_visible(self, selectors: Sequence[str]) -> Optional[str]:
        return next((s for s in selectors if s in self.visible), None)

    def fill(self, selector: str, value: str) -> None:
        self.actions.append(("fill", selector, value))

    def click(self, selector: str) -> None:
        self.actions.append(("click", selector))
        if selector in self.on_click:
            self.on_click[selector](self)

    def wait_for_load(self) -> None:
        pass

    def wait_for(self, selector: str, timeout_ms: int) -> bool:
        return selector in self.visible

    def current_url(self) -> str:
        return self.url

    def current_cookies(self) -> list[dict[str, Any]]:
        return list(self.cookies)

    def add_cookies(self, cookies: Sequence[dict[str, Any]]) -> None:
        self.added_cookies.extend(cookies)

    def collect_fields(self) -> list[DomFieldDescriptor]:
        return list(self.fields)

    def fill_field(self, descriptor: DomFieldDescriptor, value: str) -> None:
        self.filled_fields.append((descriptor, value))

    def kinds(self, kind: str) -> list[tuple]:
        return [action for action in self.actions if action[0] == kind]


@pytest.fixture
def fake_driver():
    """Factory for FakeDriver instances."""
    return FakeDriver

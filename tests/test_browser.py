"""Tests for the Playwright page driver.

The smoke test launches a real Chromium and only runs when
PLAYWRIGHT_SMOKE is set (after ``playwright install chromium``).
"""

from __future__ import annotations

import os
from urllib.parse import quote

import pytest

from jobfill.browser import DriverError, PlaywrightDriver, parse_viewport
from jobfill.models import DomFieldDescriptor


class TestOffline:
    def test_parse_viewport(self):
        assert parse_viewport("1280x800") == {"width": 1280, "height": 800}
        assert parse_viewport("1920X1080") == {"width": 1920, "height": 1080}

    def test_defaults_from_config(self):
        driver = PlaywrightDriver()
        assert driver.viewport == {"width": 1280, "height": 800}
        assert driver.timeout_ms == 30_000
        assert driver.headless is False

    def test_page_before_start_raises(self):
        with pytest.raises(DriverError, match="not started"):
            PlaywrightDriver().current_url()

    def test_fill_unknown_field_raises(self):
        with pytest.raises(DriverError, match="not on the current page"):
            PlaywrightDriver().fill_field(DomFieldDescriptor(name="email", ref=3), "x")


FORM_HTML = """
<form>
  <label for="fn">First name</label><input id="fn" name="first_name">
  <label>Email <input type="email" name="email"></label>
  <input type="hidden" name="csrf" value="t">
  <select name="state"><option value="">Pick</option><option value="TX">Texas</option></select>
  <textarea name="experience" placeholder="Your experience"></textarea>
</form>
"""


@pytest.mark.smoke
def test_collect_and_fill_fields():
    if not os.getenv("PLAYWRIGHT_SMOKE", "").strip():
        pytest.skip("Set PLAYWRIGHT_SMOKE=1 to run browser smoke tests.")

    with PlaywrightDriver(headless=True) as driver:
        driver.goto("data:text/html," + quote(FORM_HTML))
        fields = driver.collect_fields()

        assert [f.name for f in fields] == ["first_name", "email", "state", "experience"]
        assert fields[0].label == "First name"
        assert fields[2].is_enumerated
        assert [o.value for o in fields[2].options] == ["", "TX"]

        driver.fill_field(fields[0], "Ann")
        driver.fill_field(fields[2], "TX")
        assert driver.page.locator("#fn").input_value() == "Ann"
        assert driver.page.locator("select").input_value() == "TX"

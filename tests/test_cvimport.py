"""Tests for the CV JSON importer."""

from __future__ import annotations

import json

import pytest

from jobfill.cvimport import (
    CREDENTIAL_SITES,
    CV_TEMPLATE,
    PLACEHOLDER_PASSWORD,
    convert_cv_json,
    format_display_date,
    load_cv_json,
    write_template,
)
from jobfill.models import EducationEntry, LanguageEntry

CV = {
    "first_name": "Ann",
    "last_name": "Lee",
    "email": "ann@example.com",
    "password": "",
    "city": "Austin",
    "residence": "USA",
    "citizenship": "US Citizen",
    "linkedin": "https://linkedin.com/in/annlee",
    "university": "Rice University",
    "degree": "BSc",
    "discipline": "Physics",
    "undergrad_start_date": "2008",
    "undergrad_end_date": "2012",
    "employer_name": "Acme",
    "role_title": "Engineer",
    "start_date": "01/03/2015",
    "end_date": "2020-06",
    "country_of_employer": "USA",
    "employer_name2": "Globex",
    "role_title2": "",
    "native_language": "English",
    "fluent_language": "None",
    "skills": "Go, Rust, go",
}


class TestConvert:
    def test_personal_and_location(self):
        profile = convert_cv_json(CV)
        assert profile.personal.full_name == "Ann Lee"
        assert profile.personal.location == "Austin, USA"
        assert profile.work_authorization_status == "US Citizen"
        assert profile.social_media_profiles == {"linkedin": "https://linkedin.com/in/annlee"}

    def test_education_from_flat_keys(self):
        profile = convert_cv_json(CV)
        assert profile.education == [EducationEntry(institution="Rice University", degree="BSc in Physics", dates="2008 to 2012")]

    def test_education_list_passes_through(self):
        profile = convert_cv_json({"education": [{"institution": "MIT", "degree": "PhD"}]})
        assert profile.education == [EducationEntry(institution="MIT", degree="PhD")]

    def test_experience_needs_company_and_title(self):
        profile = convert_cv_json(CV)
        assert len(profile.experience) == 1
        entry = profile.experience[0]
        assert entry.dates == "March 2015 to June 2020"
        assert entry.description == "Worked as Engineer at Acme in USA"

    def test_languages_skip_none(self):
        assert convert_cv_json(CV).languages == [LanguageEntry(language="English", proficiency="Native")]

    def test_skills_split_and_deduped(self):
        assert convert_cv_json(CV).skills == ["Go", "Rust"]

    def test_default_credentials_use_placeholder(self):
        credentials = convert_cv_json(CV).credentials
        assert sorted(credentials) == sorted(CREDENTIAL_SITES)
        assert {c.password for c in credentials.values()} == {PLACEHOLDER_PASSWORD}
        assert {c.username for c in credentials.values()} == {"ann@example.com"}

    def test_no_email_no_credentials(self):
        assert convert_cv_json({"first_name": "Ann"}).credentials == {}


class TestDates:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("15/09/2019", "September 2019"),
            ("2021-02-01", "February 2021"),
            ("13/13/2020", "13/13/2020"),
            ("Summer 2018", "Summer 2018"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_format_display_date(self, raw, expected):
        assert format_display_date(raw) == expected


class TestFiles:
    def test_load_rejects_non_object(self, tmp_path):
        path = tmp_path / "cv.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError):
            load_cv_json(path)

    def test_template_round_trip(self, tmp_path):
        path = write_template(tmp_path / "template.json")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == CV_TEMPLATE
        assert "employer_name5" in data and "employer_name1" not in data
        assert load_cv_json(path).credentials == {}

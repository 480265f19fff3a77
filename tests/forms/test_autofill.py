"""Tests for mapping profile values onto classified form fields."""

from __future__ import annotations

from jobfill.forms.autofill import SkipReason, map_fields, match_option
from jobfill.models import (
    DomFieldDescriptor,
    EducationEntry,
    ExperienceEntry,
    FieldCategory,
    FieldClassification,
    FieldOption,
    PersonalInfo,
    Profile,
)


def _classified(category: FieldCategory, **descriptor) -> FieldClassification:
    return FieldClassification(DomFieldDescriptor(**descriptor), category)


def _values(report) -> dict[str, str]:
    return {a.descriptor.name: a.value for a in report.assignments}


PROFILE = Profile(
    personal=PersonalInfo(full_name="Jane Q Public", email="jane@example.com", location="Austin, TX"),
    education=[
        EducationEntry(institution="MIT", degree="BSc", dates="2010 - 2014"),
        EducationEntry(institution="Rice University", dates="2014 - 2016"),
    ],
    experience=[
        ExperienceEntry(company="Acme", title="Engineer", dates="2016 - 2020", description="Built things"),
        ExperienceEntry(company="Globex", title="Lead"),
    ],
    skills=["Go", "Rust"],
)


class TestNames:
    def test_first_and_last_from_full_name(self):
        report = map_fields(
            PROFILE,
            [
                _classified(FieldCategory.FIRST_NAME, name="first"),
                _classified(FieldCategory.LAST_NAME, name="last"),
                _classified(FieldCategory.FULL_NAME, name="full"),
            ],
        )
        assert _values(report) == {"first": "Jane", "last": "Public", "full": "Jane Q Public"}

    def test_single_token_name_fills_first_and_last_alike(self):
        profile = Profile(personal=PersonalInfo(full_name="Cher"))
        report = map_fields(
            profile,
            [_classified(FieldCategory.FIRST_NAME, name="first"), _classified(FieldCategory.LAST_NAME, name="last")],
        )
        assert _values(report) == {"first": "Cher", "last": "Cher"}
        assert report.skipped == []

    def test_no_name_skips_both(self):
        report = map_fields(
            Profile(),
            [_classified(FieldCategory.FIRST_NAME, name="first"), _classified(FieldCategory.LAST_NAME, name="last")],
        )
        assert report.filled == 0
        assert {s.reason for s in report.skipped} == {SkipReason.NO_VALUE}


class TestDirectValues:
    def test_email_and_address(self):
        report = map_fields(
            PROFILE,
            [_classified(FieldCategory.EMAIL, name="email"), _classified(FieldCategory.ADDRESS, name="addr")],
        )
        assert _values(report) == {"email": "jane@example.com", "addr": "Austin, TX"}

    def test_city_state_zip_have_no_source(self):
        report = map_fields(
            PROFILE,
            [
                _classified(FieldCategory.CITY, name="city"),
                _classified(FieldCategory.STATE, name="state"),
                _classified(FieldCategory.ZIP, name="zip"),
            ],
        )
        assert report.filled == 0
        assert {s.reason for s in report.skipped} == {SkipReason.NO_VALUE}

    def test_missing_phone_is_skipped(self):
        report = map_fields(PROFILE, [_classified(FieldCategory.PHONE, name="phone")])
        assert report.skipped[0].reason is SkipReason.NO_VALUE

    def test_unclassified_is_skipped(self):
        report = map_fields(PROFILE, [_classified(FieldCategory.NONE, name="why_us")])
        assert report.skipped[0].reason is SkipReason.UNCLASSIFIED


class TestTemplates:
    def test_education_textarea_lists_all_entries(self):
        report = map_fields(PROFILE, [_classified(FieldCategory.EDUCATION, name="edu", tag_name="textarea")])
        assert _values(report)["edu"] == "MIT, BSc, 2010 - 2014\nRice University, 2014 - 2016"

    def test_education_input_uses_first_entry(self):
        report = map_fields(PROFILE, [_classified(FieldCategory.EDUCATION, name="edu")])
        assert _values(report)["edu"] == "MIT - BSc"

    def test_experience_textarea_blocks(self):
        report = map_fields(PROFILE, [_classified(FieldCategory.EXPERIENCE, name="exp", tag_name="textarea")])
        assert _values(report)["exp"] == "Acme, Engineer, 2016 - 2020\nBuilt things\n\nGlobex, Lead"

    def test_experience_input_uses_first_entry(self):
        report = map_fields(PROFILE, [_classified(FieldCategory.EXPERIENCE, name="exp")])
        assert _values(report)["exp"] == "Acme - Engineer"

    def test_skills_joined(self):
        report = map_fields(PROFILE, [_classified(FieldCategory.SKILLS, name="skills")])
        assert _values(report)["skills"] == "Go, Rust"


class TestEnumeratedControls:
    def test_no_matching_option_is_skipped_not_forced(self):
        options = (FieldOption("golang", "Golang"), FieldOption("py", "Python"))
        report = map_fields(PROFILE, [_classified(FieldCategory.SKILLS, name="skills", tag_name="select", options=options)])
        assert report.filled == 0
        assert report.skipped[0].reason is SkipReason.NO_MATCHING_OPTION

    def test_option_text_contains_value(self):
        profile = Profile(personal=PersonalInfo(location="texas"))
        options = (FieldOption("", "Select..."), FieldOption("TX", "Texas (US)"))
        report = map_fields(profile, [_classified(FieldCategory.ADDRESS, name="region", tag_name="select", options=options)])
        assert _values(report) == {"region": "TX"}

    def test_match_option_first_wins(self):
        descriptor = DomFieldDescriptor(options=(FieldOption("a", "Go basics"), FieldOption("b", "Go advanced")))
        assert match_option(descriptor, "go") == "a"


class TestReport:
    def test_counts_and_summary(self):
        report = map_fields(
            PROFILE,
            [_classified(FieldCategory.EMAIL, name="email"), _classified(FieldCategory.NONE, name="x")],
        )
        assert report.filled == 1
        assert len(report.skipped) == 1
        assert report.summary() == "1 filled, 1 skipped"

"""Import the flat CV JSON format (one key per field) into a Profile."""

from __future__ import annotations

import calendar
import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping, Optional

from jobfill.models import (
    CertificationEntry,
    Credential,
    EducationEntry,
    ExperienceEntry,
    LanguageEntry,
    PersonalInfo,
    Profile,
)

log = logging.getLogger(__name__)

MAX_EMPLOYERS = 5
CREDENTIAL_SITES = ("linkedin", "indeed", "glassdoor")
PLACEHOLDER_PASSWORD = "placeholder"
LOCATION_KEYS = ("address1", "address2", "city", "county", "postcode", "residence")

CV_TEMPLATE: dict[str, Any] = {
    "first_name": "",
    "last_name": "",
    "email": "",
    "phone": "",
    "password": "",
    "address1": "",
    "address2": "",
    "city": "",
    "county": "",
    "postcode": "",
    "residence": "",
    "citizenship": "",
    "linkedin": "",
    "university": "",
    "degree": "",
    "discipline": "",
    "degree_score": "",
    "undergrad_start_date": "",
    "undergrad_end_date": "",
    "school_name": "",
    "school_system": "",
    "school_grades": "",
    "school_start_date": "",
    "school_end_date": "",
    "native_language": "",
    "fluent_language": "",
    "professional_language": "",
    "skills": [],
    "certifications": [],
    **{
        f"{key}{'' if i == 1 else i}": ""
        for i in range(1, MAX_EMPLOYERS + 1)
        for key in ("employer_name", "role_title", "start_date", "end_date", "country_of_employer")
    },
}

_DMY_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
_YM_RE = re.compile(r"^(\d{4})-(\d{2})")


def format_display_date(value: Optional[str]) -> str:
    """DD/MM/YYYY and YYYY-MM become "Month YYYY"; anything else is returned as is."""
    if not value:
        return ""
    value = value.strip()
    month = year = None
    match = _DMY_RE.match(value)
    if match:
        month, year = int(match.group(2)), match.group(3)
    else:
        match = _YM_RE.match(value)
        if match:
            month, year = int(match.group(2)), match.group(1)
    if month and 1 <= month <= 12:
        return f"{calendar.month_name[month]} {year}"
    return value


def _text(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _span(start: Optional[str], end: Optional[str]) -> Optional[str]:
    parts = [p for p in (start, end) if p]
    return " to ".join(parts) or None


def _location(data: Mapping[str, Any]) -> Optional[str]:
    return ", ".join(filter(None, (_text(data, key) for key in LOCATION_KEYS))) or None


def _education(data: Mapping[str, Any]) -> list[EducationEntry]:
    if isinstance(data.get("education"), list):
        return [EducationEntry.model_validate(entry) for entry in data["education"]]

    entries = []
    university = _text(data, "university")
    if university:
        degree = " in ".join(filter(None, (_text(data, "degree"), _text(data, "discipline"))))
        entries.append(
            EducationEntry(
                institution=university,
                degree=degree or None,
                dates=_span(_text(data, "undergrad_start_date"), _text(data, "undergrad_end_date")),
                gpa=_text(data, "degree_score"),
            )
        )
        school = _text(data, "school_name")
        if school:
            entries.append(
                EducationEntry(
                    institution=school,
                    degree=_text(data, "school_system"),
                    dates=_span(_text(data, "school_start_date"), _text(data, "school_end_date")),
                    gpa=_text(data, "school_grades"),
                )
            )
    return entries


def _experience(data: Mapping[str, Any]) -> list[ExperienceEntry]:
    entries = []
    for i in range(1, MAX_EMPLOYERS + 1):
        suffix = "" if i == 1 else str(i)
        company = _text(data, f"employer_name{suffix}")
        title = _text(data, f"role_title{suffix}")
        if not company or not title:
            continue
        country = _text(data, f"country_of_employer{suffix}")
        description = f"Worked as {title} at {company}" + (f" in {country}" if country else "")
        entries.append(
            ExperienceEntry(
                company=company,
                title=title,
                dates=_span(
                    format_display_date(_text(data, f"start_date{suffix}")) or None,
                    format_display_date(_text(data, f"end_date{suffix}")) or None,
                ),
                description=description,
            )
        )
    return entries


def _languages(data: Mapping[str, Any]) -> list[LanguageEntry]:
    entries = []
    for key, proficiency in (
        ("native_language", "Native"),
        ("fluent_language", "Fluent"),
        ("professional_language", "Professional"),
    ):
        language = _text(data, key)
        if language and language.lower() != "none":
            entries.append(LanguageEntry(language=language, proficiency=proficiency))
    return entries


def _skills(data: Mapping[str, Any]) -> list[str]:
    raw = data.get("skills") or []
    if isinstance(raw, str):
        raw = raw.split(",")
    return [str(skill) for skill in raw]


def _certifications(data: Mapping[str, Any]) -> list[CertificationEntry]:
    entries = []
    for item in data.get("certifications") or []:
        if isinstance(item, str):
            if item.strip():
                entries.append(CertificationEntry(name=item.strip()))
        else:
            entries.append(CertificationEntry.model_validate(item))
    return entries


def convert_cv_json(data: Mapping[str, Any]) -> Profile:
    """Build a Profile from CV JSON.

    Every job site gets a default credential from the CV email and password
    (or a placeholder password, to be replaced with ``jobfill credentials``).
    """
    email = _text(data, "email")
    full_name = " ".join(filter(None, (_text(data, "first_name"), _text(data, "last_name"))))

    profile = Profile(
        personal=PersonalInfo(
            full_name=full_name or None,
            email=email,
            phone=_text(data, "phone"),
            location=_location(data),
        ),
        education=_education(data),
        experience=_experience(data),
        skills=_skills(data),
        languages=_languages(data),
        certifications=_certifications(data),
        work_authorization_status=_text(data, "citizenship"),
    )

    linkedin = _text(data, "linkedin")
    if linkedin:
        profile.social_media_profiles["linkedin"] = linkedin

    if email:
        password = _text(data, "password") or PLACEHOLDER_PASSWORD
        for site in CREDENTIAL_SITES:
            profile.credentials[site] = Credential(username=email, password=password)
    else:
        log.warning("CV JSON has no email; no default site credentials created")

    return profile


def load_cv_json(path: Path) -> Profile:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    profile = convert_cv_json(data)
    log.info(
        "Imported CV JSON: %d education, %d experience, %d languages",
        len(profile.education),
        len(profile.experience),
        len(profile.languages),
    )
    return profile


def write_template(path: Path) -> Path:
    path.write_text(json.dumps(CV_TEMPLATE, indent=2), encoding="utf-8")
    return path

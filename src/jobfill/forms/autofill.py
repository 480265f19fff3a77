"""
Map classified form controls to values drawn from a Profile.

The mapper never touches a page. It returns a FillReport listing what to
fill and what was skipped (and why); the page driver applies the assignments.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional

from jobfill.models import (
    DomFieldDescriptor,
    EducationEntry,
    ExperienceEntry,
    FieldCategory,
    FieldClassification,
    Profile,
)

log = logging.getLogger(__name__)


class SkipReason(str, Enum):
    NO_VALUE = "no value"
    NO_MATCHING_OPTION = "no matching option"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class FieldAssignment:
    descriptor: DomFieldDescriptor
    value: str


@dataclass(frozen=True)
class SkippedField:
    descriptor: DomFieldDescriptor
    reason: SkipReason


@dataclass
class FillReport:
    assignments: list[FieldAssignment] = field(default_factory=list)
    skipped: list[SkippedField] = field(default_factory=list)

    @property
    def filled(self) -> int:
        return len(self.assignments)

    def summary(self) -> str:
        return f"{self.filled} filled, {len(self.skipped)} skipped"


# ---------------------------------------------------------------------------
# Value templates
# ---------------------------------------------------------------------------


def _join(parts: Iterable[Optional[str]], separator: str) -> str:
    return separator.join(part for part in parts if part)


def _education_text(entries: list[EducationEntry], multiline: bool) -> str:
    if not entries:
        return ""
    if not multiline:
        first = entries[0]
        return _join((first.institution, first.degree), " - ")
    return "\n".join(_join((e.institution, e.degree, e.dates), ", ") for e in entries)


def _experience_text(entries: list[ExperienceEntry], multiline: bool) -> str:
    if not entries:
        return ""
    if not multiline:
        first = entries[0]
        return _join((first.company, first.title), " - ")
    blocks = []
    for entry in entries:
        header = _join((entry.company, entry.title, entry.dates), ", ")
        blocks.append(_join((header, entry.description), "\n"))
    return "\n\n".join(blocks)


def _name_tokens(profile: Profile) -> list[str]:
    return (profile.personal.full_name or "").split()


ValueSource = Callable[[Profile, DomFieldDescriptor], str]

VALUE_SOURCES: dict[FieldCategory, ValueSource] = {
    FieldCategory.FIRST_NAME: lambda p, d: (_name_tokens(p) or [""])[0],
    FieldCategory.LAST_NAME: lambda p, d: (_name_tokens(p) or [""])[-1],
    FieldCategory.FULL_NAME: lambda p, d: p.personal.full_name or "",
    FieldCategory.EMAIL: lambda p, d: p.personal.email or "",
    FieldCategory.PHONE: lambda p, d: p.personal.phone or "",
    FieldCategory.ADDRESS: lambda p, d: p.personal.location or "",
    # No structured city/state/zip in the profile yet.
    FieldCategory.CITY: lambda p, d: "",
    FieldCategory.STATE: lambda p, d: "",
    FieldCategory.ZIP: lambda p, d: "",
    FieldCategory.EDUCATION: lambda p, d: _education_text(p.education, d.is_multiline),
    FieldCategory.EXPERIENCE: lambda p, d: _experience_text(p.experience, d.is_multiline),
    FieldCategory.SKILLS: lambda p, d: ", ".join(p.skills),
}


def match_option(descriptor: DomFieldDescriptor, value: str) -> Optional[str]:
    """Value of the first option whose text contains ``value``, ignoring case."""
    needle = value.lower()
    for option in descriptor.options:
        if needle in option.text.lower():
            return option.value
    return None


def map_fields(profile: Profile, classifications: Iterable[FieldClassification]) -> FillReport:
    report = FillReport()
    for item in classifications:
        descriptor = item.descriptor
        source = VALUE_SOURCES.get(item.category)
        if source is None:
            report.skipped.append(SkippedField(descriptor, SkipReason.UNCLASSIFIED))
            continue

        value = source(profile, descriptor)
        if not value:
            report.skipped.append(SkippedField(descriptor, SkipReason.NO_VALUE))
            continue

        if descriptor.is_enumerated:
            option_value = match_option(descriptor, value)
            if option_value is None:
                log.debug("No option of %s matches %r", descriptor.describe(), value)
                report.skipped.append(SkippedField(descriptor, SkipReason.NO_MATCHING_OPTION))
                continue
            value = option_value

        report.assignments.append(FieldAssignment(descriptor, value))

    log.debug("Autofill mapping: %s", report.summary())
    return report

"""Split raw resume text into labeled sections.

A section starts at a heading line naming one of its kind's vocabulary terms
and runs until the next heading line of any other kind (or a stop heading
such as PROJECTS), exclusive, or the end of the document.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Mapping, Sequence


class SectionKind(str, Enum):
    EDUCATION = "education"
    EXPERIENCE = "experience"
    SKILLS = "skills"
    LANGUAGES = "languages"
    CERTIFICATIONS = "certifications"


DEFAULT_HEADINGS: Mapping[SectionKind, tuple[str, ...]] = {
    SectionKind.EDUCATION: ("EDUCATION", "ACADEMIC BACKGROUND", "QUALIFICATIONS"),
    SectionKind.EXPERIENCE: (
        "EXPERIENCE",
        "WORK EXPERIENCE",
        "PROFESSIONAL EXPERIENCE",
        "EMPLOYMENT",
        "EMPLOYMENT HISTORY",
        "WORK HISTORY",
        "PROFESSIONAL BACKGROUND",
    ),
    SectionKind.SKILLS: ("SKILLS", "TECHNICAL SKILLS", "CORE COMPETENCIES"),
    SectionKind.LANGUAGES: ("LANGUAGES", "LANGUAGE PROFICIENCY"),
    SectionKind.CERTIFICATIONS: ("CERTIFICATIONS", "CERTIFICATES", "LICENSES"),
}

# Headings that close any open section but are not extracted themselves.
STOP_HEADINGS: tuple[str, ...] = (
    "SUMMARY",
    "PROFESSIONAL SUMMARY",
    "OBJECTIVE",
    "PROFILE",
    "PROJECTS",
    "AWARDS",
    "HONORS",
    "REFERENCES",
    "INTERESTS",
    "HOBBIES",
    "PUBLICATIONS",
    "VOLUNTEER",
    "VOLUNTEERING",
)

_STOP = "__stop__"


def _heading_pattern(terms: Sequence[str]) -> re.Pattern[str]:
    """A heading is either a line holding only the term (any case), or an
    upper-case term followed by a colon and inline content ("SKILLS: Go")."""
    # Longest first so "WORK EXPERIENCE" is not cut short by "EXPERIENCE".
    alternatives = "|".join(re.escape(t.upper()) for t in sorted(terms, key=len, reverse=True))
    return re.compile(
        rf"^[ \t]*(?:[#*•\-][ \t]*)?(?:(?i:{alternatives})[ \t]*:?[ \t]*$|(?:{alternatives})[ \t]*:)",
        re.MULTILINE,
    )


def find_headings(
    text: str,
    headings: Mapping[SectionKind, Sequence[str]] = DEFAULT_HEADINGS,
    stop_headings: Sequence[str] = STOP_HEADINGS,
) -> list[tuple[int, int, str]]:
    """Locate every heading line.

    Returns:
        Sorted ``(line_start, body_start, kind)`` tuples, where ``kind`` is a
        SectionKind value or the internal stop marker.
    """
    found: dict[int, tuple[int, int, str]] = {}
    patterns: list[tuple[str, re.Pattern[str]]] = [(kind.value, _heading_pattern(terms)) for kind, terms in headings.items()]
    if stop_headings:
        patterns.append((_STOP, _heading_pattern(stop_headings)))

    for kind, pattern in patterns:
        for match in pattern.finditer(text):
            line_start = text.rfind("\n", 0, match.start() + 1) + 1
            current = found.get(line_start)
            # When two vocabularies claim the same line the longer heading wins.
            if current is None or match.end() > current[1]:
                found[line_start] = (line_start, match.end(), kind)
    return sorted(found.values())


def segment_sections(
    text: str,
    headings: Mapping[SectionKind, Sequence[str]] = DEFAULT_HEADINGS,
    stop_headings: Sequence[str] = STOP_HEADINGS,
) -> dict[SectionKind, str]:
    """Capture the body of each recognized section.

    Every kind in ``headings`` is present in the result; kinds without an
    anchor map to an empty string.
    """
    sections: dict[SectionKind, str] = {kind: "" for kind in headings}
    marks = find_headings(text, headings, stop_headings)

    for kind in headings:
        anchor_index = next((i for i, mark in enumerate(marks) if mark[2] == kind.value), None)
        if anchor_index is None:
            continue
        body_start = marks[anchor_index][1]
        end = len(text)
        for line_start, _, other in marks[anchor_index + 1 :]:
            if other != kind.value:
                end = line_start
                break
        sections[kind] = text[body_start:end].strip("\n")
    return sections

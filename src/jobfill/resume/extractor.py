"""
Pattern-based resume extraction for jobfill.

Turns plain resume text into an ExtractedResume using section-scoped regex
cascades. Each section has a primary anchor (institution, company line,
certification title); secondary attributes are searched in a bounded context
window around the anchor and their absence never discards the record.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from jobfill.models import (
    NOT_SPECIFIED,
    CertificationEntry,
    EducationEntry,
    ExperienceEntry,
    ExtractedResume,
    LanguageEntry,
    PersonalInfo,
    unique_skills,
)
from jobfill.resume.segmenter import (
    DEFAULT_HEADINGS,
    STOP_HEADINGS,
    SectionKind,
    find_headings,
    segment_sections,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

LANGUAGE_VOCABULARY: tuple[str, ...] = (
    "English",
    "Spanish",
    "French",
    "German",
    "Italian",
    "Chinese",
    "Japanese",
    "Russian",
    "Arabic",
    "Portuguese",
    "Hindi",
    "Bengali",
    "Urdu",
    "Dutch",
    "Turkish",
)

PROFICIENCY_KEYWORDS: tuple[str, ...] = (
    "fluent",
    "native",
    "professional",
    "beginner",
    "intermediate",
    "advanced",
    "proficient",
    "basic",
)


@dataclass(frozen=True)
class ExtractionVocabulary:
    """Immutable tables the extractor is built with."""

    headings: Mapping[SectionKind, tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_HEADINGS))
    stop_headings: tuple[str, ...] = STOP_HEADINGS
    languages: tuple[str, ...] = LANGUAGE_VOCABULARY
    proficiency_keywords: tuple[str, ...] = PROFICIENCY_KEYWORDS


DEFAULT_VOCABULARY = ExtractionVocabulary()

# (before, after) context window sizes, in characters.
EDUCATION_WINDOW = (100, 300)
EXPERIENCE_WINDOW = (50, 400)
CERTIFICATION_WINDOW = (50, 200)
# Characters after a language name searched for a proficiency keyword.
SECTION_LANGUAGE_REACH = 40
DOCUMENT_LANGUAGE_REACH = 30
DESCRIPTION_LIMIT = 300
HEADER_LINES = 10


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_MONTH = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\.?"
DATE_RANGE_RE = re.compile(
    rf"\b(?:{_MONTH}[ \t]+)?\d{{4}}[ \t]*[-–—][ \t]*(?:(?:{_MONTH}[ \t]+)?\d{{4}}|Present)\b",
    re.IGNORECASE,
)
DATE_RE = re.compile(rf"{DATE_RANGE_RE.pattern}|\b\d{{4}}\b", re.IGNORECASE)
GPA_RE = re.compile(r"GPA[ \t]*:?[ \t]*(\d+(?:\.\d+)?)(?:[ \t]*/[ \t]*(\d+(?:\.\d+)?))?", re.IGNORECASE)

_CAP_WORD = r"[A-Z][A-Za-z&.'\-]*"
INSTITUTION_RE = re.compile(
    rf"(?:{_CAP_WORD}[ \t]+)*\b(?:University|College|Institute|School|Academy)\b"
    rf"(?:[ \t]+(?:of|for|and)(?:[ \t]+(?:the[ \t]+)?{_CAP_WORD})+)?"
)
DEGREE_RE = re.compile(
    r"\b(?:Bachelor|Master|Ph\.?D|Doctor(?:ate)?|MBA|Associate|B\.S\.|M\.S\.|B\.A\.|M\.A\.|B\.Sc|M\.Sc|"
    r"B\.Eng|M\.Eng|B\.Tech|M\.Tech)[^\n]*",
)

_CERT_WORD = r"[A-Z][A-Za-z0-9&+.\-/]*"
CERTIFICATION_RE = re.compile(
    rf"(?:{_CERT_WORD}[ \t]+)*\b(?:Certification|Certificate|Certified|License|Licence)\b"
    rf"(?:[ \t]+(?:(?:in|of|for|on)[ \t]+)?{_CERT_WORD})*"
)
CERT_DATE_RE = re.compile(r"\b(?:\d{2}/\d{2}/\d{4}|\d{2}-\d{2}-\d{4}|\d{4})\b")
ISSUER_RE = re.compile(r"(?:issued by|from|through)[ \t]+([A-Za-z][A-Za-z .&\-]*)", re.IGNORECASE)

_NAME_TOKEN = r"[A-Z][a-z]+(?:[-'][A-Z]?[a-z]+)*"
NAME_RE = re.compile(rf"^[ \t]*({_NAME_TOKEN}(?:[ \t]+(?:[A-Z]\.?|{_NAME_TOKEN})){{1,3}})[ \t]*$")
EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_RE = re.compile(r"(?<![\d-])(?:\+\d{1,3}[-. ]?)?\(?\d{3}\)?[-. ]?\d{3}[-. ]?\d{4}(?!\d)")
LOCATION_LABEL_RE = re.compile(r"(?:Address|Location)[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE)
LOCATION_RE = re.compile(r"\b([A-Z][A-Za-z]+(?:[ \t][A-Z][A-Za-z]+)*,[ \t]?[A-Z]{2})\b")
DOB_RE = re.compile(r"(?:Date of Birth|DOB|Born)[ \t]*:[ \t]*(\d{1,2}[-/]\d{1,2}[-/]\d{2,4})", re.IGNORECASE)
SOCIAL_RE = re.compile(
    r"(?:https?://)?(?:www\.)?((linkedin|github|twitter|x|facebook|instagram)\.com/(?:in/)?[\w.\-]+)",
    re.IGNORECASE,
)
AUTHORIZATION_RE = re.compile(
    r"^[^\n]*\b(?:citizen(?:ship)?|permanent resident|work authori[sz]ation|authori[sz]ed to work|visa)\b[^\n]*$",
    re.IGNORECASE | re.MULTILINE,
)

_SKILL_SPLIT_RE = re.compile(r"[,•·|;\n]")
_EDGE_CHARS = " \t,|:;–—-•·*()"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = re.sub(r"[ \t]+", " ", value).strip(_EDGE_CHARS)
    return cleaned or None


def _window(text: str, start: int, end: int, size: tuple[int, int], floor: int = 0, ceiling: Optional[int] = None) -> str:
    before, after = size
    ceiling = len(text) if ceiling is None else ceiling
    return text[max(floor, start - before) : min(ceiling, end + after)]


def _first(pattern: re.Pattern[str], text: str) -> Optional[str]:
    match = pattern.search(text)
    return _clean(match.group(0)) if match else None


def _lines(text: str) -> list[tuple[int, int, str]]:
    """(start, end, text) for every line, offsets into ``text``."""
    result = []
    offset = 0
    for line in text.split("\n"):
        result.append((offset, offset + len(line), line))
        offset += len(line) + 1
    return result


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class ResumeExtractor:
    """Runs the per-section pattern cascades over one resume's text."""

    def __init__(self, vocabulary: ExtractionVocabulary = DEFAULT_VOCABULARY) -> None:
        self.vocabulary = vocabulary
        keywords = "|".join(re.escape(k) for k in vocabulary.proficiency_keywords)
        self._proficiency_re = re.compile(rf"\b(?:{keywords})\b", re.IGNORECASE)

    def extract(self, text: str) -> ExtractedResume:
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        sections = segment_sections(text, self.vocabulary.headings, self.vocabulary.stop_headings)

        extracted = ExtractedResume(
            personal=self.extract_personal(text),
            education=self.extract_education(sections[SectionKind.EDUCATION]),
            experience=self.extract_experience(sections[SectionKind.EXPERIENCE]),
            skills=self.extract_skills(sections[SectionKind.SKILLS]),
            languages=self.extract_languages(text, sections[SectionKind.LANGUAGES]),
            certifications=self.extract_certifications(sections[SectionKind.CERTIFICATIONS]),
            social_media_profiles=self.extract_social_profiles(text),
            work_authorization_status=self.extract_work_authorization(text, sections),
        )
        log.debug(
            "Extracted %d education, %d experience, %d skills, %d languages, %d certifications",
            len(extracted.education),
            len(extracted.experience),
            len(extracted.skills),
            len(extracted.languages),
            len(extracted.certifications),
        )
        return extracted

    # -- personal ----------------------------------------------------------

    def _header(self, text: str) -> str:
        """Text above the first recognized heading, limited to HEADER_LINES lines."""
        marks = find_headings(text, self.vocabulary.headings, self.vocabulary.stop_headings)
        header = text[: marks[0][0]] if marks else text
        lines = [line for line in header.split("\n") if line.strip()]
        return "\n".join(lines[:HEADER_LINES])

    def extract_personal(self, text: str) -> PersonalInfo:
        info = PersonalInfo()

        for line in self._header(text).split("\n"):
            name_match = NAME_RE.match(line)
            if name_match:
                info.full_name = _clean(name_match.group(1))
                break

        email_match = EMAIL_RE.search(text)
        if email_match:
            info.email = email_match.group(0)

        phone_match = PHONE_RE.search(text)
        if phone_match:
            info.phone = phone_match.group(0).strip()

        labeled = LOCATION_LABEL_RE.search(text)
        if labeled:
            info.location = _clean(labeled.group(1))
        else:
            located = LOCATION_RE.search(text)
            if located:
                info.location = _clean(located.group(1))

        dob_match = DOB_RE.search(text)
        if dob_match:
            info.date_of_birth = dob_match.group(1)

        return info

    def extract_social_profiles(self, text: str) -> dict[str, str]:
        profiles: dict[str, str] = {}
        for match in SOCIAL_RE.finditer(text):
            network = match.group(2).lower()
            if network == "x":
                network = "twitter"
            profiles.setdefault(network, f"https://{match.group(1).rstrip('.')}")
        return profiles

    def extract_work_authorization(self, text: str, sections: Mapping[SectionKind, str]) -> Optional[str]:
        # Company names like "Visa Inc" must not count, so work history is masked out.
        searchable = text
        for kind in (SectionKind.EXPERIENCE, SectionKind.EDUCATION):
            if sections.get(kind):
                searchable = searchable.replace(sections[kind], "")
        match = AUTHORIZATION_RE.search(searchable)
        status = _clean(match.group(0)) if match else None
        return status[:120] if status else None

    # -- education ---------------------------------------------------------

    def extract_education(self, section: str) -> list[EducationEntry]:
        entries: list[EducationEntry] = []
        matches = list(INSTITUTION_RE.finditer(section))
        for index, match in enumerate(matches):
            institution = _clean(match.group(0))
            if not institution:
                continue
            # The window never reaches into a neighbouring institution's entry.
            floor = matches[index - 1].end() if index else 0
            ceiling = matches[index + 1].start() if index + 1 < len(matches) else len(section)
            context = _window(section, match.start(), match.end(), EDUCATION_WINDOW, floor, ceiling)

            degree = None
            degree_match = DEGREE_RE.search(context)
            if degree_match:
                degree_line = degree_match.group(0)
                # Keep the degree itself, not the dates or GPA that share its line.
                cut = min(
                    (m.start() for m in (DATE_RE.search(degree_line), GPA_RE.search(degree_line)) if m),
                    default=len(degree_line),
                )
                degree = _clean(degree_line[:cut])

            gpa = None
            gpa_match = GPA_RE.search(context)
            if gpa_match:
                gpa = gpa_match.group(1) + (f"/{gpa_match.group(2)}" if gpa_match.group(2) else "")

            entries.append(
                EducationEntry(
                    institution=institution,
                    degree=degree,
                    dates=_first(DATE_RE, context),
                    gpa=gpa,
                )
            )
        return entries

    # -- experience --------------------------------------------------------

    def extract_experience(self, section: str) -> list[ExperienceEntry]:
        """Entries are anchored on lines carrying a date range.

        The company is the text before the range on that line, or the nearest
        non-empty line above when the range stands alone. The title is the
        first non-empty line preceding the company line inside the window:
        a positional rule, so unusual line breaks produce odd titles.
        """
        lines = _lines(section)
        claimed: set[int] = set()
        candidates: list[dict] = []

        for index, (start, end, line) in enumerate(lines):
            range_match = DATE_RANGE_RE.search(line)
            if not range_match:
                continue
            date_line = index
            company = _clean(line[: range_match.start()])
            anchor = index
            if not company:
                above = self._previous_content_line(lines, index, claimed)
                if above is not None and not DATE_RANGE_RE.search(lines[above][2]):
                    anchor = above
                    company = _clean(lines[above][2])
            if not company:
                log.debug("Discarding experience candidate without company near %r", line.strip())
                continue

            anchor_start = lines[anchor][0]
            window_start = max(0, anchor_start - EXPERIENCE_WINDOW[0])
            title = None
            first_line = anchor
            title_index = self._previous_content_line(lines, anchor, claimed)
            if (
                title_index is not None
                and lines[title_index][1] > window_start
                and not DATE_RANGE_RE.search(lines[title_index][2])
            ):
                title = _clean(lines[title_index][2])
                first_line = title_index

            context = _window(section, anchor_start, lines[anchor][1], EXPERIENCE_WINDOW)
            claimed.update(range(first_line, date_line + 1))
            candidates.append(
                {
                    "company": company,
                    "title": title,
                    "dates": _first(DATE_RE, context),
                    "first_line": first_line,
                    "date_line": date_line,
                }
            )

        entries: list[ExperienceEntry] = []
        for position, candidate in enumerate(candidates):
            stop = candidates[position + 1]["first_line"] if position + 1 < len(candidates) else len(lines)
            body = "\n".join(line for _, _, line in lines[candidate["date_line"] + 1 : stop]).strip()
            entries.append(
                ExperienceEntry(
                    company=candidate["company"],
                    title=candidate["title"],
                    dates=candidate["dates"],
                    description=body[:DESCRIPTION_LIMIT].rstrip() or None,
                )
            )
        return entries

    @staticmethod
    def _previous_content_line(lines: Sequence[tuple[int, int, str]], index: int, claimed: set[int]) -> Optional[int]:
        for candidate in range(index - 1, -1, -1):
            if candidate in claimed:
                return None
            if lines[candidate][2].strip():
                return candidate
        return None

    # -- skills ------------------------------------------------------------

    def extract_skills(self, section: str) -> list[str]:
        heading_words = {t.lower() for terms in self.vocabulary.headings.values() for t in terms}
        skills = []
        for raw in _SKILL_SPLIT_RE.split(section):
            item = raw.strip().lstrip("-*–• \t")
            if ":" in item:
                # "Programming: Python" -> "Python"
                item = item.split(":", 1)[1]
            item = item.strip().rstrip(".")
            if not item or len(item) > 60 or item.lower() in heading_words:
                continue
            skills.append(item)
        return unique_skills(skills)

    # -- languages ---------------------------------------------------------

    def extract_languages(self, text: str, section: str) -> list[LanguageEntry]:
        """Two tiers: the languages section when present, else the whole
        document, where a proficiency keyword is required next to the name."""
        entries: list[LanguageEntry] = []
        if section.strip():
            for language in self.vocabulary.languages:
                mentions = list(re.finditer(rf"\b{re.escape(language)}\b", section, re.IGNORECASE))
                if not mentions:
                    continue
                proficiency = NOT_SPECIFIED
                for mention in mentions:
                    reach = section[mention.end() : mention.end() + SECTION_LANGUAGE_REACH].split("\n", 1)[0]
                    keyword = self._proficiency_re.search(reach)
                    if keyword:
                        proficiency = keyword.group(0).capitalize()
                        break
                entries.append(LanguageEntry(language=language, proficiency=proficiency))
            return entries

        for language in self.vocabulary.languages:
            for mention in re.finditer(rf"\b{re.escape(language)}\b", text):
                reach = text[mention.end() : mention.end() + DOCUMENT_LANGUAGE_REACH]
                keyword = self._proficiency_re.search(reach)
                if keyword:
                    entries.append(LanguageEntry(language=language, proficiency=keyword.group(0).capitalize()))
                    break
        return entries

    # -- certifications ----------------------------------------------------

    def extract_certifications(self, section: str) -> list[CertificationEntry]:
        entries: list[CertificationEntry] = []
        for match in CERTIFICATION_RE.finditer(section):
            name = _clean(match.group(0))
            if not name:
                continue
            context = _window(section, match.start(), match.end(), CERTIFICATION_WINDOW)
            issuer_match = ISSUER_RE.search(context)
            entries.append(
                CertificationEntry(
                    name=name,
                    date=_first(CERT_DATE_RE, context),
                    issuer=_clean(issuer_match.group(1)) if issuer_match else None,
                )
            )
        return entries


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def extract_resume_data(text: str, vocabulary: ExtractionVocabulary = DEFAULT_VOCABULARY) -> ExtractedResume:
    """Extract structured profile data from resume text."""
    return ResumeExtractor(vocabulary).extract(text)


def extraction_warnings(extracted: ExtractedResume) -> list[str]:
    """Human-readable notes about what the extraction could not find."""
    warnings = []

    if not extracted.personal.full_name:
        warnings.append("Could not extract name")

    if not extracted.personal.email:
        warnings.append("Could not extract email")

    if not extracted.skills:
        warnings.append("No skills extracted")

    if not extracted.experience:
        warnings.append("No companies extracted from work history")

    return warnings

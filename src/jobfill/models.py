"""
Canonical profile schema, form-field snapshots and session records.

Profile data is held in pydantic models so it validates on load and dumps
straight to ``profile.json``. Form descriptors and classifications are frozen
dataclasses: they are immutable snapshots taken from a page, never live
handles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

NOT_SPECIFIED = "Not specified"
PROFICIENCY_LEVELS: tuple[str, ...] = ("Native", "Fluent", "Professional", NOT_SPECIFIED)


class PersonalInfo(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    date_of_birth: Optional[str] = None


class EducationEntry(BaseModel):
    institution: str = Field(min_length=1)
    degree: Optional[str] = None
    dates: Optional[str] = None
    gpa: Optional[str] = None


class ExperienceEntry(BaseModel):
    company: str = Field(min_length=1)
    title: Optional[str] = None
    dates: Optional[str] = None
    description: Optional[str] = None


class LanguageEntry(BaseModel):
    language: str = Field(min_length=1)
    proficiency: str = NOT_SPECIFIED


class CertificationEntry(BaseModel):
    name: str = Field(min_length=1)
    date: Optional[str] = None
    issuer: Optional[str] = None


class Reference(BaseModel):
    name: str = Field(min_length=1)
    title: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class Credential(BaseModel):
    """Login for one job site. The password never appears in repr or logs."""

    username: str
    password: str = Field(repr=False)


class Profile(BaseModel):
    """Everything jobfill knows about the applicant."""

    personal: PersonalInfo = Field(default_factory=PersonalInfo)
    education: list[EducationEntry] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    languages: list[LanguageEntry] = Field(default_factory=list)
    certifications: list[CertificationEntry] = Field(default_factory=list)
    references: list[Reference] = Field(default_factory=list)
    work_authorization_status: Optional[str] = None
    social_media_profiles: dict[str, str] = Field(default_factory=dict)
    credentials: dict[str, Credential] = Field(default_factory=dict)

    @field_validator("skills")
    @classmethod
    def _dedupe_skills(cls, value: list[str]) -> list[str]:
        return unique_skills(value)

    def searchable_text(self) -> str:
        """Lower-cased JSON of the profile without credentials, for keyword checks."""
        return self.model_dump_json(exclude={"credentials"}).lower()


def unique_skills(skills: list[str]) -> list[str]:
    """Drop blanks and case-insensitive duplicates, keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for skill in skills:
        cleaned = skill.strip()
        key = cleaned.lower()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
    return result


class ExtractedResume(BaseModel):
    """Raw output of one extraction pass, before it is merged into a Profile."""

    personal: PersonalInfo = Field(default_factory=PersonalInfo)
    education: list[EducationEntry] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    languages: list[LanguageEntry] = Field(default_factory=list)
    certifications: list[CertificationEntry] = Field(default_factory=list)
    work_authorization_status: Optional[str] = None
    social_media_profiles: dict[str, str] = Field(default_factory=dict)


class MissingField(str, Enum):
    """Ticket identifiers emitted by the completeness analyzer."""

    FULL_NAME = "fullName"
    EMAIL = "email"
    PHONE = "phone"
    LOCATION = "location"
    DATE_OF_BIRTH = "dateOfBirth"
    EDUCATION = "education"
    COMPLETE_EDUCATION_DETAILS = "completeEducationDetails"
    WORK_EXPERIENCE = "workExperience"
    COMPLETE_WORK_EXPERIENCE_DETAILS = "completeWorkExperienceDetails"
    SKILLS = "skills"
    LANGUAGES = "languages"
    REFERENCES = "references"
    WORK_AUTHORIZATION_STATUS = "workAuthorizationStatus"
    SOCIAL_MEDIA_PROFILES = "socialMediaProfiles"


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class Session(BaseModel):
    """Persisted authentication artifact for one domain."""

    domain: str
    username: str
    cookie: Optional[dict] = Field(default=None, repr=False)
    # True when the cookie was picked without knowing the site's session cookie name.
    low_confidence: bool = False


# ---------------------------------------------------------------------------
# Form fields
# ---------------------------------------------------------------------------


class FieldCategory(str, Enum):
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    FULL_NAME = "fullName"
    EMAIL = "email"
    PHONE = "phone"
    ADDRESS = "address"
    CITY = "city"
    STATE = "state"
    ZIP = "zip"
    EDUCATION = "education"
    EXPERIENCE = "experience"
    SKILLS = "skills"
    NONE = "none"


@dataclass(frozen=True)
class FieldOption:
    value: str
    text: str


@dataclass(frozen=True)
class DomFieldDescriptor:
    """Snapshot of a form control's identifying attributes.

    ``ref`` indexes the page driver's field arena so a filled value can be
    routed back to the live element; it takes no part in equality.
    """

    name: str = ""
    id: str = ""
    placeholder: str = ""
    type: str = ""
    label: str = ""
    tag_name: str = "input"
    options: tuple[FieldOption, ...] = ()
    ref: int = field(default=-1, compare=False)

    @property
    def is_multiline(self) -> bool:
        return self.tag_name.lower() == "textarea"

    @property
    def is_enumerated(self) -> bool:
        return bool(self.options)

    def text_sources(self) -> tuple[str, str, str, str]:
        """Lower-cased name, id, placeholder and label."""
        return (
            self.name.lower(),
            self.id.lower(),
            self.placeholder.lower(),
            self.label.lower(),
        )

    def describe(self) -> str:
        return self.name or self.id or self.placeholder or self.label or f"<{self.tag_name}>"


@dataclass(frozen=True)
class FieldClassification:
    descriptor: DomFieldDescriptor
    category: FieldCategory

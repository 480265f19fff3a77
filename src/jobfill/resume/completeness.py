"""Ordered completeness rules that turn a Profile into missing-field tickets."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from jobfill.models import MissingField, Profile

AUTHORIZATION_KEYWORDS = ("citizen", "permanent resident", "work authorization", "visa")
SOCIAL_KEYWORDS = ("linkedin", "github", "twitter", "facebook", "instagram")

# Each rule yields at most one ticket; rules run in list order.
Rule = Callable[[Profile, str], Optional[MissingField]]


def _personal(attribute: str, ticket: MissingField) -> Rule:
    def rule(profile: Profile, _: str) -> Optional[MissingField]:
        return None if getattr(profile.personal, attribute) else ticket

    return rule


def _education(profile: Profile, _: str) -> Optional[MissingField]:
    if not profile.education:
        return MissingField.EDUCATION
    if any(not entry.degree or not entry.dates for entry in profile.education):
        return MissingField.COMPLETE_EDUCATION_DETAILS
    return None


def _experience(profile: Profile, _: str) -> Optional[MissingField]:
    if not profile.experience:
        return MissingField.WORK_EXPERIENCE
    if any(not entry.title or not entry.dates for entry in profile.experience):
        return MissingField.COMPLETE_WORK_EXPERIENCE_DETAILS
    return None


def _skills(profile: Profile, _: str) -> Optional[MissingField]:
    return None if profile.skills else MissingField.SKILLS


def _languages(profile: Profile, _: str) -> Optional[MissingField]:
    return None if profile.languages else MissingField.LANGUAGES


def _references(profile: Profile, _: str) -> Optional[MissingField]:
    # Resumes rarely carry references, so they are always asked for.
    return MissingField.REFERENCES


def _work_authorization(_: Profile, serialized: str) -> Optional[MissingField]:
    if any(keyword in serialized for keyword in AUTHORIZATION_KEYWORDS):
        return None
    return MissingField.WORK_AUTHORIZATION_STATUS


def _social_profiles(_: Profile, serialized: str) -> Optional[MissingField]:
    if any(keyword in serialized for keyword in SOCIAL_KEYWORDS):
        return None
    return MissingField.SOCIAL_MEDIA_PROFILES


DEFAULT_RULES: tuple[Rule, ...] = (
    _personal("full_name", MissingField.FULL_NAME),
    _personal("email", MissingField.EMAIL),
    _personal("phone", MissingField.PHONE),
    _personal("location", MissingField.LOCATION),
    _personal("date_of_birth", MissingField.DATE_OF_BIRTH),
    _education,
    _experience,
    _skills,
    _languages,
    _references,
    _work_authorization,
    _social_profiles,
)


def analyze_profile(profile: Profile, rules: Sequence[Rule] = DEFAULT_RULES) -> list[MissingField]:
    """Return the missing-field tickets for ``profile`` in rule order."""
    serialized = profile.searchable_text()
    tickets = []
    for rule in rules:
        ticket = rule(profile, serialized)
        if ticket is not None:
            tickets.append(ticket)
    return tickets

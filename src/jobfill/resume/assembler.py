"""Merge extraction output into a Profile without ever degrading it."""

from __future__ import annotations

import logging
from typing import Optional

from jobfill.models import ExtractedResume, Profile, unique_skills

log = logging.getLogger(__name__)

_PERSONAL_FIELDS = ("full_name", "email", "phone", "location", "date_of_birth")


def _append_new(existing: list, incoming: list) -> int:
    added = 0
    for entry in incoming:
        if entry not in existing:
            existing.append(entry)
            added += 1
    return added


def assemble_profile(extracted: ExtractedResume, profile: Optional[Profile] = None) -> Profile:
    """Fold ``extracted`` into a copy of ``profile`` (or a fresh one).

    Populated values are never replaced with empty ones, and records already
    present are not appended again, so assembling the same extraction twice
    gives the same Profile.
    """
    merged = profile.model_copy(deep=True) if profile is not None else Profile()

    for name in _PERSONAL_FIELDS:
        value = getattr(extracted.personal, name)
        if value:
            setattr(merged.personal, name, value)

    added = _append_new(merged.education, extracted.education)
    added += _append_new(merged.experience, extracted.experience)
    added += _append_new(merged.certifications, extracted.certifications)

    known_languages = {entry.language.lower() for entry in merged.languages}
    for entry in extracted.languages:
        if entry.language.lower() not in known_languages:
            merged.languages.append(entry.model_copy())
            known_languages.add(entry.language.lower())
            added += 1

    merged.skills = unique_skills(merged.skills + extracted.skills)

    for network, url in extracted.social_media_profiles.items():
        merged.social_media_profiles.setdefault(network, url)

    if not merged.work_authorization_status and extracted.work_authorization_status:
        merged.work_authorization_status = extracted.work_authorization_status

    log.debug("Assembled profile: %d new records, %d skills", added, len(merged.skills))
    return merged

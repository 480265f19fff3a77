"""Assign a semantic category to each form control.

Rules are checked in order and the first match wins, so a control named
``first_name_email`` is a first-name field: the name rules come before email.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence

from jobfill.models import DomFieldDescriptor, FieldCategory, FieldClassification

log = logging.getLogger(__name__)

Predicate = Callable[[DomFieldDescriptor], bool]


def _mentions(*keywords: str) -> Predicate:
    """True when any text source of the control contains any keyword."""

    def predicate(descriptor: DomFieldDescriptor) -> bool:
        return any(keyword in source for source in descriptor.text_sources() for keyword in keywords)

    return predicate


def _mentions_both(first: str, second: str) -> Predicate:
    """True when both keywords occur, each in any of the text sources."""
    has_first = _mentions(first)
    has_second = _mentions(second)
    return lambda descriptor: has_first(descriptor) and has_second(descriptor)


def _typed(field_type: str) -> Predicate:
    return lambda descriptor: descriptor.type.lower() == field_type


def _either(*predicates: Predicate) -> Predicate:
    return lambda descriptor: any(p(descriptor) for p in predicates)


DEFAULT_RULES: tuple[tuple[Predicate, FieldCategory], ...] = (
    (_mentions_both("name", "first"), FieldCategory.FIRST_NAME),
    (_mentions_both("name", "last"), FieldCategory.LAST_NAME),
    (_mentions("name"), FieldCategory.FULL_NAME),
    (_either(_mentions("email"), _typed("email")), FieldCategory.EMAIL),
    (_either(_mentions("phone"), _typed("tel")), FieldCategory.PHONE),
    (_mentions("address"), FieldCategory.ADDRESS),
    (_mentions("city"), FieldCategory.CITY),
    (_mentions("state"), FieldCategory.STATE),
    (_mentions("zip", "postal"), FieldCategory.ZIP),
    (_mentions("education"), FieldCategory.EDUCATION),
    (_mentions("experience"), FieldCategory.EXPERIENCE),
    (_mentions("skill"), FieldCategory.SKILLS),
)


def classify_field(
    descriptor: DomFieldDescriptor,
    rules: Sequence[tuple[Predicate, FieldCategory]] = DEFAULT_RULES,
) -> FieldCategory:
    for predicate, category in rules:
        if predicate(descriptor):
            return category
    return FieldCategory.NONE


def classify_fields(
    descriptors: Iterable[DomFieldDescriptor],
    rules: Sequence[tuple[Predicate, FieldCategory]] = DEFAULT_RULES,
) -> list[FieldClassification]:
    """Classify every descriptor, keeping input order."""
    classified = [FieldClassification(descriptor, classify_field(descriptor, rules)) for descriptor in descriptors]
    unresolved = sum(1 for item in classified if item.category is FieldCategory.NONE)
    log.debug("Classified %d fields (%d unresolved)", len(classified), unresolved)
    return classified

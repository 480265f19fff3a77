"""Interactive collection of missing profile fields and site credentials.

Tickets are asked in the order the completeness analyzer emits them.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from jobfill.models import (
    NOT_SPECIFIED,
    Credential,
    EducationEntry,
    ExperienceEntry,
    LanguageEntry,
    MissingField,
    Profile,
    Reference,
    unique_skills,
)

log = logging.getLogger(__name__)

console = Console()

CREDENTIAL_SITES: tuple[str, ...] = ("linkedin", "indeed", "glassdoor")


def _ask(label: str, default: str = "") -> str:
    return Prompt.ask(label, default=default, show_default=bool(default)).strip()


def _optional(label: str) -> str | None:
    return _ask(f"{label} [dim](optional)[/dim]") or None


# ---------------------------------------------------------------------------
# Per-ticket handlers
# ---------------------------------------------------------------------------


def _full_name(profile: Profile) -> None:
    profile.personal.full_name = _ask("Full name") or None


def _email(profile: Profile) -> None:
    profile.personal.email = _ask("Email") or None


def _phone(profile: Profile) -> None:
    profile.personal.phone = _ask("Phone number") or None


def _location(profile: Profile) -> None:
    profile.personal.location = _ask("Location (City, State)") or None


def _date_of_birth(profile: Profile) -> None:
    if Confirm.ask("Include your date of birth?", default=False):
        profile.personal.date_of_birth = _ask("Date of birth (MM/DD/YYYY)") or None


def _education(profile: Profile) -> None:
    if not Confirm.ask("Add education?", default=True):
        return
    institution = _ask("Institution")
    if not institution:
        console.print("[yellow]Skipped: an institution is required.[/yellow]")
        return
    profile.education.append(
        EducationEntry(
            institution=institution,
            degree=_optional("Degree"),
            dates=_optional("Dates (e.g. 2018-2022)"),
            gpa=_optional("GPA"),
        )
    )


def _complete_education(profile: Profile) -> None:
    console.print("[dim]Some education entries are incomplete.[/dim]")
    for entry in profile.education:
        if not entry.degree:
            entry.degree = _ask(f"Degree for {entry.institution}") or None
        if not entry.dates:
            entry.dates = _ask(f"Dates for {entry.institution} (e.g. 2018-2022)") or None


def _experience(profile: Profile) -> None:
    if not Confirm.ask("Add work experience?", default=True):
        return
    company = _ask("Company")
    if not company:
        console.print("[yellow]Skipped: a company is required.[/yellow]")
        return
    profile.experience.append(
        ExperienceEntry(
            company=company,
            title=_optional("Job title"),
            dates=_optional("Dates (e.g. 2018-2022)"),
            description=_optional("Description"),
        )
    )


def _complete_experience(profile: Profile) -> None:
    console.print("[dim]Some work experience entries are incomplete.[/dim]")
    for entry in profile.experience:
        if not entry.title:
            entry.title = _ask(f"Job title at {entry.company}") or None
        if not entry.dates:
            entry.dates = _ask(f"Dates at {entry.company} (e.g. 2018-2022)") or None


def _skills(profile: Profile) -> None:
    console.print("[dim]No skills were found in the resume.[/dim]")
    raw = _ask("Skills (comma-separated)")
    profile.skills = unique_skills(profile.skills + [s for s in raw.split(",") if s.strip()])


def _languages(profile: Profile) -> None:
    if not Confirm.ask("Add a spoken language?", default=True):
        return
    language = _ask("Language")
    if language:
        proficiency = _ask("Proficiency", default=NOT_SPECIFIED)
        profile.languages.append(LanguageEntry(language=language, proficiency=proficiency or NOT_SPECIFIED))


def _references(profile: Profile) -> None:
    if not Confirm.ask("Add a reference?", default=False):
        return
    name = _ask("Reference name")
    if not name:
        return
    profile.references.append(
        Reference(
            name=name,
            title=_optional("Title"),
            company=_optional("Company"),
            email=_optional("Email"),
            phone=_optional("Phone"),
        )
    )


def _work_authorization(profile: Profile) -> None:
    profile.work_authorization_status = _ask("Work authorization status (e.g. US citizen, H-1B visa)") or None


def _social_profiles(profile: Profile) -> None:
    for network, label in (("linkedin", "LinkedIn"), ("github", "GitHub")):
        if Confirm.ask(f"Add a {label} profile?", default=network == "linkedin"):
            url = _ask(f"{label} URL")
            if url:
                profile.social_media_profiles[network] = url


HANDLERS: dict[MissingField, Callable[[Profile], None]] = {
    MissingField.FULL_NAME: _full_name,
    MissingField.EMAIL: _email,
    MissingField.PHONE: _phone,
    MissingField.LOCATION: _location,
    MissingField.DATE_OF_BIRTH: _date_of_birth,
    MissingField.EDUCATION: _education,
    MissingField.COMPLETE_EDUCATION_DETAILS: _complete_education,
    MissingField.WORK_EXPERIENCE: _experience,
    MissingField.COMPLETE_WORK_EXPERIENCE_DETAILS: _complete_experience,
    MissingField.SKILLS: _skills,
    MissingField.LANGUAGES: _languages,
    MissingField.REFERENCES: _references,
    MissingField.WORK_AUTHORIZATION_STATUS: _work_authorization,
    MissingField.SOCIAL_MEDIA_PROFILES: _social_profiles,
}


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def collect_missing(profile: Profile, tickets: Iterable[MissingField]) -> Profile:
    """Ask for each ticket in order and return the completed copy of ``profile``."""
    tickets = list(tickets)
    completed = profile.model_copy(deep=True)
    if not tickets:
        return completed

    console.print(Panel(f"[bold]Missing information[/bold]\n{len(tickets)} item(s) could not be read from your resume."))
    for ticket in tickets:
        log.debug("Collecting %s", ticket.value)
        HANDLERS[ticket](completed)
    return completed


def collect_credentials(profile: Profile, sites: Sequence[str] = CREDENTIAL_SITES) -> Profile:
    """Ask for job-site logins not yet stored. Passwords are read without echo."""
    updated = profile.model_copy(deep=True)
    console.print(Panel("[bold]Job site logins[/bold]\nUsed only to sign in before applying."))
    for site in sites:
        if site in updated.credentials:
            console.print(f"[dim]{site}: already configured ({updated.credentials[site].username})[/dim]")
            continue
        if not Confirm.ask(f"Add {site} credentials?", default=False):
            continue
        username = _ask(f"{site} username / email", default=updated.personal.email or "")
        password = Prompt.ask(f"{site} password", password=True)
        if username and password:
            updated.credentials[site] = Credential(username=username, password=password)
            log.info("Stored credentials for %s", site)
    return updated

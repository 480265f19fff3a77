"""jobfill command-line interface."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from jobfill import __version__, config
from jobfill.auth.authenticator import SiteAuthenticator
from jobfill.auth.sites import credential_keys, load_sites
from jobfill.errors import JobfillError, ProfileNotFound, UnsupportedFormat
from jobfill.models import Credential, MissingField, Profile
from jobfill.store import ProfileStore

log = logging.getLogger(__name__)

console = Console()

app = typer.Typer(
    name="jobfill",
    help="Turn a resume into a profile and use it to fill job applications.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    config.refresh_paths()
    config.ensure_dirs()
    config.load_env()
    config.setup_logging(verbose)


@app.command()
def version() -> None:
    """Show the jobfill version."""
    console.print(f"jobfill {__version__}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_profile(store: ProfileStore) -> Profile:
    try:
        return store.load_profile()
    except ProfileNotFound as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    except ValidationError as e:
        console.print(f"[red]Stored profile is invalid:[/red] {e}")
        raise typer.Exit(code=1)


def _display_profile(profile: Profile) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="dim")
    table.add_column("Value")

    personal = profile.personal
    for label, value in (
        ("Name", personal.full_name),
        ("Email", personal.email),
        ("Phone", personal.phone),
        ("Location", personal.location),
        ("Date of birth", personal.date_of_birth),
    ):
        if value:
            table.add_row(label, value)

    for entry in profile.education:
        table.add_row("Education", ", ".join(filter(None, (entry.institution, entry.degree, entry.dates))))
    for entry in profile.experience:
        table.add_row("Experience", ", ".join(filter(None, (entry.company, entry.title, entry.dates))))
    if profile.skills:
        table.add_row("Skills", ", ".join(profile.skills))
    if profile.languages:
        table.add_row("Languages", ", ".join(f"{entry.language} ({entry.proficiency})" for entry in profile.languages))
    for entry in profile.certifications:
        table.add_row("Certification", ", ".join(filter(None, (entry.name, entry.issuer, entry.date))))
    if profile.work_authorization_status:
        table.add_row("Work authorization", profile.work_authorization_status)
    for network, url in profile.social_media_profiles.items():
        table.add_row(network.capitalize(), url)
    if profile.credentials:
        table.add_row("Logins", ", ".join(sorted(profile.credentials)))

    console.print(table)


def _display_tickets(tickets: list[MissingField]) -> None:
    if not tickets:
        console.print("[green]Profile is complete.[/green]")
        return
    console.print(f"[yellow]Missing or incomplete ({len(tickets)}):[/yellow] " + ", ".join(t.value for t in tickets))


# ---------------------------------------------------------------------------
# Profile commands
# ---------------------------------------------------------------------------


@app.command("parse-resume")
def parse_resume(
    resume: Path = typer.Argument(..., help="Resume file (.pdf, .docx or .txt)"),
    interactive: bool = typer.Option(
        True, "--interactive/--no-interactive", help="Ask for missing fields and job-site logins."
    ),
) -> None:
    """Extract a profile from a resume and merge it into the stored profile."""
    from jobfill.resume.assembler import assemble_profile
    from jobfill.resume.completeness import analyze_profile
    from jobfill.resume.documents import extract_text
    from jobfill.resume.extractor import extract_resume_data, extraction_warnings
    from jobfill.wizard.collector import collect_credentials, collect_missing

    try:
        text = extract_text(resume)
    except (UnsupportedFormat, FileNotFoundError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    store = ProfileStore()
    existing = _require_profile(store) if store.has_profile() else None

    console.print("[dim]Analyzing resume...[/dim]")
    extracted = extract_resume_data(text)
    for warning in extraction_warnings(extracted):
        console.print(f"[yellow]  - {warning}[/yellow]")

    profile = assemble_profile(extracted, existing)
    console.print("\n[bold cyan]Profile:[/bold cyan]")
    _display_profile(profile)

    tickets = analyze_profile(profile)
    _display_tickets(tickets)

    if interactive:
        profile = collect_missing(profile, tickets)
        profile = collect_credentials(profile)

    store.save_profile(profile)
    console.print(f"\n[green]Profile saved to {store.profile_path}[/green]")


@app.command("import-cv-json")
def import_cv_json(
    file: Path = typer.Argument(..., help="CV JSON file"),
) -> None:
    """Replace the stored profile with one built from CV JSON."""
    from jobfill.cvimport import load_cv_json

    if not file.exists():
        console.print(f"[red]File not found:[/red] {file}")
        raise typer.Exit(code=1)
    try:
        profile = load_cv_json(file)
    except (ValueError, ValidationError) as e:
        console.print(f"[red]Could not import {file}:[/red] {e}")
        raise typer.Exit(code=1)

    store = ProfileStore()
    backup = store.backup_profile()
    if backup:
        console.print(f"[dim]Previous profile backed up to {backup}[/dim]")
    store.save_profile(profile)
    _display_profile(profile)
    console.print(f"\n[green]CV JSON imported to {store.profile_path}[/green]")


@app.command("generate-template")
def generate_template(
    output: Path = typer.Option(Path("cv-template.json"), "--output", "-o", help="Where to write the template"),
) -> None:
    """Write an empty CV JSON template."""
    from jobfill.cvimport import write_template

    write_template(output)
    console.print(f"Template CV JSON generated at {output}")


@app.command("show-profile")
def show_profile() -> None:
    """Show the stored profile and what is still missing."""
    from jobfill.resume.completeness import analyze_profile

    store = ProfileStore()
    profile = _require_profile(store)
    _display_profile(profile)
    _display_tickets(analyze_profile(profile))


@app.command()
def credentials() -> None:
    """Add job-site logins to the stored profile."""
    from jobfill.wizard.collector import collect_credentials

    store = ProfileStore()
    profile = _require_profile(store)
    store.save_profile(collect_credentials(profile, tuple(load_sites()) or ("linkedin", "indeed", "glassdoor")))


# ---------------------------------------------------------------------------
# Apply commands
# ---------------------------------------------------------------------------


def _site_credentials(profile: Profile, registry, urls) -> dict[str, Credential]:
    """Stored logins, overridden by JOBFILL_<SITE>_USERNAME/PASSWORD variables."""
    merged = dict(profile.credentials)
    keys = list(registry) + list(merged)
    for url in urls:
        keys.extend(credential_keys(url, registry))
    for key, (username, password) in config.env_credentials(dict.fromkeys(keys)).items():
        merged[key] = Credential(username=username, password=password)
    return merged


@app.command()
def apply(
    url: str = typer.Argument(..., help="Job posting URL"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Fill the form but do not submit."),
    headless: bool = typer.Option(False, "--headless", help="Run the browser without a window."),
) -> None:
    """Apply to a single job."""
    from jobfill.apply.runner import apply_to_job
    from jobfill.browser import PlaywrightDriver

    store = ProfileStore()
    profile = _require_profile(store)
    registry = load_sites()

    with PlaywrightDriver(headless=headless) as driver:
        authenticator = SiteAuthenticator(driver, store, _site_credentials(profile, registry, [url]), registry)
        authenticator.restore_sessions()
        result = apply_to_job(driver, authenticator, profile, url, dry_run=dry_run)

    colour = "green" if result.success else "red"
    console.print(f"[{colour}]{result.status}[/{colour}] {result.message} ({result.filled} fields filled)")
    if not result.success:
        raise typer.Exit(code=1)


@app.command("batch-apply")
def batch_apply(
    file: Path = typer.Argument(..., help="Text file with one job URL per line"),
    delay: float = typer.Option(config.DEFAULTS["apply_delay"], "--delay", help="Seconds between applications."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Fill forms but do not submit."),
    headless: bool = typer.Option(False, "--headless", help="Run the browser without a window."),
) -> None:
    """Apply to every job listed in FILE, one after another."""
    from jobfill.apply import runner
    from jobfill.browser import PlaywrightDriver

    if not file.exists():
        console.print(f"[red]File not found:[/red] {file}")
        raise typer.Exit(code=1)
    urls = runner.read_job_urls(file)
    if not urls:
        console.print("[yellow]No job URLs found.[/yellow]")
        raise typer.Exit(code=0)

    store = ProfileStore()
    profile = _require_profile(store)
    registry = load_sites()
    console.print(f"Found {len(urls)} job URLs. [dim]Ctrl+C stops the batch.[/dim]")

    def _report(index: int, result: runner.ApplicationResult) -> None:
        colour = "green" if result.success else "red"
        console.print(f"[{index + 1}/{len(urls)}] [{colour}]{result.status}[/{colour}] {result.url}")

    try:
        with PlaywrightDriver(headless=headless) as driver:
            authenticator = SiteAuthenticator(driver, store, _site_credentials(profile, registry, urls), registry)
            authenticator.restore_sessions()
            results = runner.batch_apply(
                driver, authenticator, profile, urls, dry_run=dry_run, delay=delay, on_result=_report
            )
    except JobfillError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    table = Table(title="Batch results")
    table.add_column("URL", overflow="fold")
    table.add_column("Status")
    table.add_column("Filled", justify="right")
    for result in results:
        table.add_row(result.url, result.status, str(result.filled))
    console.print(table)

    succeeded = sum(1 for r in results if r.success)
    console.print(f"\n[bold]Done: {succeeded} succeeded, {len(results) - succeeded} failed[/bold]")
    console.print(f"Results: {runner.write_batch_results(results)}")


if __name__ == "__main__":
    app()

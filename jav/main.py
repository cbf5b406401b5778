"""jav CLI: all commands."""

import json
import logging
from pathlib import Path
from typing import Annotated

import tomlkit
import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.markup import escape
from rich.table import Table

from jav.engine import run_assignment
from jav.issues import resolve_issues
from jav.log import configure_logging
from jav.models import ExitCode, Mode, RunConfig, RunReport, VersionField
from jav.settings import CONFIG_PATH, _list_profiles, _load_toml, get_settings

logger = logging.getLogger(__name__)

app = typer.Typer(help="jira-assign-version: add a fix/affected version to Jira issues in bulk", no_args_is_help=True)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-p", help="Profile name from ~/.config/jav/config.toml"),
]


def _config_error(message: str) -> typer.Exit:
    rprint(f"[red]{escape(message)}[/red]")
    return typer.Exit(ExitCode.CONFIG_ERROR)


# ---------------------------------------------------------------------------
# Report rendering
# ---------------------------------------------------------------------------


def render_report(report: RunReport) -> Table:
    table = Table(title="Run summary")
    table.add_column("Issue", style="cyan")
    table.add_column("Outcome")
    table.add_column("Detail", style="dim")

    for issue in report.updated:
        table.add_row(issue, "[green]updated[/green]", "")
    for issue in report.skipped:
        table.add_row(issue, "[yellow]skipped[/yellow]", "already has version")
    for failure in report.failed:
        table.add_row(failure.issue, "[red]failed[/red]", escape(failure.error))

    return table


def write_github_output(path: Path, report: RunReport) -> None:
    """Append step outputs in the GITHUB_OUTPUT key=value format."""
    failed = json.dumps([f.model_dump() for f in report.failed])
    lines = [
        f"updated-issues={','.join(report.updated)}",
        f"failed-issues={failed}",
        f"skipped-issues={','.join(report.skipped)}",
    ]
    with path.open("a", encoding="utf-8") as fh:
        fh.write("\n".join(lines) + "\n")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("assign")
def assign(
    version: Annotated[str, typer.Argument(help="Version name (or id with --version-is-id)")],
    issues: Annotated[
        str | None,
        typer.Option("--issues", "-i", help='Issue keys: JSON array or comma-separated ("ABC-1,ABC-2")'),
    ] = None,
    issues_file: Annotated[
        Path | None,
        typer.Option("--issues-file", "-f", help="File with a JSON array or one key per line"),
    ] = None,
    version_is_id: Annotated[bool, typer.Option("--version-is-id", help="Treat VERSION as a version id")] = False,
    mode: Annotated[Mode, typer.Option("--mode", "-m", help="Which field to update")] = Mode.FIX,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Report what would change without writing")] = False,
    concurrency: Annotated[
        int | None, typer.Option("--concurrency", "-c", min=1, help="Parallel issues (default 4)")
    ] = None,
    max_retries: Annotated[
        int | None, typer.Option("--max-retries", min=0, help="Attempts per request (default 4)")
    ] = None,
    profile: ProfileOpt = None,
    json_output: Annotated[bool, typer.Option("--json", help="Print the report as JSON")] = False,
    github_output: Annotated[
        Path | None,
        typer.Option("--github-output", envvar="GITHUB_OUTPUT", help="Append step outputs to this file"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Add VERSION to every issue's fixVersions (or affectedVersions)."""
    configure_logging(verbose)

    try:
        issue_list = resolve_issues(issues, issues_file)
    except (ValueError, OSError) as exc:
        raise _config_error(str(exc)) from exc
    if not issue_list:
        raise _config_error("No issue keys found in the given input.")

    settings = get_settings(profile=profile)
    field = VersionField.from_mode(mode)

    try:
        config = RunConfig(
            base_url=settings.jira_base_url or "",
            user=settings.jira_user,
            token=settings.jira_token,
            issues=tuple(issue_list),
            version=version,
            version_is_id=version_is_id,
            field=field,
            dry_run=dry_run,
            concurrency=concurrency if concurrency is not None else settings.concurrency,
            max_retries=max_retries if max_retries is not None else settings.max_retries,
            timeout=settings.timeout,
        )
    except ValidationError as exc:
        raise _config_error(f"Invalid configuration: {exc}") from exc

    logger.info("Mode: %s", mode.value)
    logger.info("Issues: %s", ", ".join(config.issues))
    logger.info("Version: %s (%s)", version, "id" if version_is_id else "name")
    if dry_run:
        logger.info("Dry run enabled - no changes will be made.")

    report = run_assignment(config)

    if github_output:
        write_github_output(github_output, report)

    if json_output:
        typer.echo(report.model_dump_json(indent=2))
    else:
        rprint(render_report(report))
        rprint(
            f"Done. Updated {len(report.updated)} issues, skipped {len(report.skipped)}, "
            f"failed {len(report.failed)}."
        )

    exit_code = report.outcome.exit_code
    if exit_code != ExitCode.SUCCESS:
        if not json_output:
            rprint(f"[red]{len(report.failed)} issues failed to update[/red]")
        raise typer.Exit(exit_code)


def _read_config_doc() -> tomlkit.TOMLDocument:
    # Round-trip preserves any existing comments
    return tomlkit.load(CONFIG_PATH.open()) if CONFIG_PATH.exists() else tomlkit.document()


def _write_config_doc(doc: tomlkit.TOMLDocument) -> None:
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    _load_toml.cache_clear()


@app.command("set-default")
def set_default(
    profile: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default profile in ~/.config/jav/config.toml."""
    doc = _read_config_doc()
    profiles = _list_profiles(doc)
    # With no profiles yet the name is kept for a later `jav init`
    if profiles and profile not in profiles:
        raise _config_error(f"Profile '{profile}' not found in {CONFIG_PATH}. Available: {', '.join(profiles)}")

    doc["default_profile"] = profile
    _write_config_doc(doc)
    rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    try:
        settings = get_settings(profile=profile)
    except (SystemExit, typer.Exit):
        return

    def mask(val: str | None) -> str:
        # Never show any part of a credential
        return "***" if val else "[dim](not set)[/dim]"

    table = Table(title="jav configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_profile", settings.default_profile or "[dim](not set)[/dim]")
    table.add_row("jira_base_url", settings.jira_base_url or "[dim](not set)[/dim]")
    table.add_row("jira_user", mask(settings.jira_user.get_secret_value() if settings.jira_user else None))
    table.add_row("jira_token", mask(settings.jira_token.get_secret_value() if settings.jira_token else None))
    table.add_row("concurrency", str(settings.concurrency))
    table.add_row("max_retries", str(settings.max_retries))
    table.add_row("timeout", f"{settings.timeout:g}s")

    rprint(table)


@app.command("init")
def init_cmd() -> None:
    """Interactive first-time setup wizard."""
    rprint("[bold]jav Setup Wizard[/bold]")
    rprint("")

    profile_name = typer.prompt("Profile name (e.g. work, personal)").strip()
    if not profile_name:
        rprint("[red]Profile name cannot be empty.[/red]")
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    base_url = typer.prompt("Jira site URL (e.g. https://example.atlassian.net)").strip().rstrip("/")
    if not base_url.startswith(("https://", "http://")):
        rprint("[red]Jira site URL must start with https:// or http://[/red]")
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    user = typer.prompt("Jira account email").strip()
    rprint("Create an API token at: https://id.atlassian.com/manage-profile/security/api-tokens")
    token = typer.prompt("Paste API token", hide_input=True).strip()

    set_as_default = typer.confirm(f"Set '{profile_name}' as default profile?", default=True)

    doc = _read_config_doc()

    doc[profile_name] = {"jira_base_url": base_url, "jira_user": user, "jira_token": token}
    if set_as_default:
        doc["default_profile"] = profile_name

    _write_config_doc(doc)
    rprint(f"[green]✓[/green] Profile '{profile_name}' written to {CONFIG_PATH}")
    rprint("")
    config_show(profile=profile_name)

"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
from pathlib import Path
from typing import Any, Coroutine, NoReturn, TypeVar

import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from github_triage_manager.configuration.config import load_triage_config_file, switch_active_environment
from github_triage_manager.configuration.driver import get_triage_config
from github_triage_manager.configuration.env import Settings
from github_triage_manager.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
    TriageConfigurationError,
)
from github_triage_manager.configuration.models import TriageConfig
from github_triage_manager.configuration.reconcile import reconcile_state_file
from github_triage_manager.exceptions import InputValidationError, IssueFetchError, TriageError
from github_triage_manager.triage.driver import (
    run_comment_workflow,
    run_label_all_workflow,
    run_label_issue_workflow,
    run_select_next_workflow,
    run_session_cycle_workflow,
)
from github_triage_manager.triage.labeling import LabelingOutcome
from github_triage_manager.triage.models import SessionState
from github_triage_manager.triage.priority import format_issue_report
from github_triage_manager.triage.session import SessionContext, read_state, write_state
from github_triage_manager.utils.logging_config import configure_logging

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Triage GitHub issues: label them with a model and pick what to work on next.")
state_app = typer.Typer(help="Inspect or reset the work/break session state.")
env_app = typer.Typer(help="Show or switch the active environment of the configuration file.")

CONFIGURATION_ERRORS = (
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
    TriageConfigurationError,
    InputValidationError,
)

T = TypeVar("T")


def _fail(message: str) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(1)


def _run_workflow(workflow: Coroutine[Any, Any, T]) -> T:
    """Run a workflow to completion, reporting configuration problems found along the way."""
    try:
        return asyncio.run(workflow)
    except TriageConfigurationError as exc:
        _fail(f"Configuration error: {exc}")


@typer_app.callback()
def main_callback(
    ctx: typer.Context,
    config: Annotated[Path | None, Option("--config", envvar="TRIAGE_CONFIG", help="Path to the triage YAML configuration file.")] = None,
    repo: Annotated[str | None, Option("--repo", envvar="REPO", help="Repository name (owner/repo). Overrides the active environment.")] = None,
    github_api_url: Annotated[str | None, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = None,
    github_pat_token: Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.")] = None,
    state_file: Annotated[Path | None, Option(envvar="STATE_FILE", help="Path to the session state JSON file.")] = None,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug logging.")] = False,
) -> None:
    """Store the global options for the current context."""
    configure_logging(debug)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["repo"] = repo
    ctx.obj["github_api_url"] = github_api_url
    ctx.obj["github_pat_token"] = github_pat_token
    ctx.obj["state_file"] = state_file
    ctx.obj["debug"] = debug


def load_config(ctx: typer.Context) -> TriageConfig:
    """Reconcile the configuration, exiting with a message on configuration or credential errors."""
    try:
        return get_triage_config(
            config_path=ctx.obj["config_path"],
            repo=ctx.obj["repo"],
            github_api_url=ctx.obj["github_api_url"],
            github_pat_token=ctx.obj["github_pat_token"],
            state_file=ctx.obj["state_file"],
            debug=ctx.obj["debug"],
        )
    except CONFIGURATION_ERRORS as exc:
        _fail(f"Configuration error: {exc}")


def _config_path(ctx: typer.Context) -> Path:
    return ctx.obj["config_path"] or Settings().TRIAGE_CONFIG


def _state_context(ctx: typer.Context) -> SessionContext:
    config_path = _config_path(ctx)
    try:
        config_file = load_triage_config_file(config_path)
    except TriageConfigurationError as exc:
        _fail(f"Configuration error: {exc}")
    state_path = asyncio.run(reconcile_state_file(ctx.obj["state_file"], Settings(), config_file, config_path))
    return SessionContext(state_path=state_path)


@typer_app.command(name="select-next")
def select_next_cli(ctx: typer.Context) -> None:
    """Select the open issue to work on next (urgent, then important, then oldest update)."""
    config = load_config(ctx)
    try:
        issue = _run_workflow(run_select_next_workflow(config))
    except IssueFetchError as exc:
        _fail(f"Error selecting next issue: {exc}")
    if issue is None:
        typer.echo("No open issues available for processing.")
        return
    typer.echo("Selected issue (oldest updated):")
    typer.echo(format_issue_report(issue))


@typer_app.command(name="cycle")
def cycle_cli(ctx: typer.Context) -> None:
    """Toggle between work and break sessions.

    Entering a work session selects the next issue; entering a break suggests an activity.
    """
    config = load_config(ctx)
    result = _run_workflow(run_session_cycle_workflow(config))
    typer.echo(result.message)
    for detail in result.details:
        typer.echo(detail)
    if not result.persisted:
        typer.echo(f"Warning: session state could not be saved to {config.state_file}; it was kept in memory for this run.", err=True)
    if result.fetch_error:
        _fail(f"Error selecting next issue: {result.fetch_error}")


def _echo_outcome(outcome: LabelingOutcome) -> None:
    if outcome.success:
        labels = ", ".join(outcome.labels) or "none"
        typer.echo(f"#{outcome.issue_number}: {outcome.action.value if outcome.action else 'processed'} (labels: {labels})")
    else:
        reason = outcome.reason.value if outcome.reason else "error"
        typer.echo(f"#{outcome.issue_number}: failed ({reason}): {outcome.error}", err=True)


@typer_app.command(name="label-issue")
def label_issue_cli(
    ctx: typer.Context,
    issue_number: Annotated[int, Argument(help="Number of the issue to label.")],
) -> None:
    """Label a single issue with the urgency and importance suggested by the model."""
    config = load_config(ctx)
    try:
        outcome = _run_workflow(run_label_issue_workflow(config, issue_number))
    except TriageError as exc:
        _fail(f"Error fetching issue #{issue_number}: {exc}")
    _echo_outcome(outcome)
    if not outcome.success:
        raise typer.Exit(1)


@typer_app.command(name="label-all")
def label_all_cli(
    ctx: typer.Context,
    fail_on_error: Annotated[bool, Option(help="Exit with an error code if any issue failed.")] = False,
) -> None:
    """Label every open issue, skipping issues that already carry the suggested labels."""
    config = load_config(ctx)
    typer.echo(f"Processing all open issues from {config.repo}...")
    typer.echo(f"Using label configuration with allowed labels: {config.allowed_labels.describe()}")
    try:
        report = _run_workflow(run_label_all_workflow(config))
    except IssueFetchError as exc:
        _fail(f"Error processing batch of issues: {exc}")

    for outcome in report.results:
        _echo_outcome(outcome)

    summary = report.summary
    typer.echo("")
    typer.echo("Issue Labeling Summary:")
    typer.echo(f"  Total issues: {summary.total}")
    typer.echo(f"  Successfully processed: {summary.success}")
    typer.echo(f"  Failed: {summary.failed}")
    typer.echo(f"  New labels applied: {summary.labeled}")
    typer.echo(f"  Skipped: {summary.skipped}")
    if fail_on_error and summary.failed:
        raise typer.Exit(1)


@typer_app.command(name="comment")
def comment_cli(
    ctx: typer.Context,
    issue_number: Annotated[int, Argument(help="Number of the issue to comment on.")],
    body: Annotated[str, Argument(help="Comment text.")],
) -> None:
    """Post a comment on an issue."""
    config = load_config(ctx)
    try:
        _run_workflow(run_comment_workflow(config, issue_number, body))
    except TriageError as exc:
        _fail(f"Error commenting on issue #{issue_number}: {exc}")
    typer.echo(f"Commented on issue #{issue_number}")


@state_app.command(name="show")
def state_show_cli(ctx: typer.Context) -> None:
    """Print the current session state."""
    context = _state_context(ctx)
    typer.echo(read_state(context).to_json())


@state_app.command(name="reset")
def state_reset_cli(ctx: typer.Context) -> None:
    """Reset the session state so the next cycle starts a work session."""
    context = _state_context(ctx)
    if not write_state(context, SessionState()):
        _fail(f"Could not write session state to {context.state_path}")
    typer.echo(f"Session state reset in {context.state_path}")


@env_app.command(name="status")
def env_status_cli(ctx: typer.Context) -> None:
    """Show the environments of the configuration file and which one is active."""
    config_path = _config_path(ctx)
    try:
        config_file = load_triage_config_file(config_path)
    except TriageConfigurationError as exc:
        _fail(f"Configuration error: {exc}")
    if not config_file.environments:
        typer.echo(f"No environments defined in {config_path}")
        return
    for name, environment in config_file.environments.items():
        marker = "*" if environment.active else " "
        typer.echo(f"{marker} {name}: {environment.repository.full_name}")


@env_app.command(name="switch")
def env_switch_cli(
    ctx: typer.Context,
    environment_name: Annotated[str, Argument(help="Name of the environment to activate.")],
) -> None:
    """Make ENVIRONMENT_NAME the active environment."""
    config_path = _config_path(ctx)
    try:
        config_file = switch_active_environment(config_path, environment_name)
    except TriageConfigurationError as exc:
        _fail(f"Configuration error: {exc}")
    repository = config_file.environments[environment_name].repository
    typer.echo(f"Active environment is now {environment_name} ({repository.full_name})")


typer_app.add_typer(state_app, name="state")
typer_app.add_typer(env_app, name="env")


if __name__ == "__main__":
    typer_app()

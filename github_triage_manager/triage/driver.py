"""Orchestrates the triage workflows: builds the adapters from configuration and runs the core logic."""

import time

import jinja2
import structlog

from github_triage_manager.classifier.adapter import LabelClassifier
from github_triage_manager.classifier.client import GitHubModelsClient
from github_triage_manager.configuration.exceptions import TriageConfigurationError
from github_triage_manager.configuration.models import TriageConfig
from github_triage_manager.exceptions import InputValidationError
from github_triage_manager.github.adapter import GitHubKitAdapter
from github_triage_manager.triage.labeling import LabelingOutcome, LabelingReport, label_all_issues, label_issue
from github_triage_manager.triage.models import TriageIssue
from github_triage_manager.triage.priority import fetch_open_issues, select_next_issue
from github_triage_manager.triage.session import SessionContext, SessionCycleResult, run_session_cycle
from github_triage_manager.utils.templates import load_label_prompt_template

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def create_issue_tracker(config: TriageConfig) -> GitHubKitAdapter:
    """Set up the issue tracker adapter for the configured repository.

    Raises:
        TriageConfigurationError: If the configured repository is malformed.
    """
    try:
        return await GitHubKitAdapter.create(
            repo=config.repo,
            github_token=config.github_token,
            github_api_url=config.github_api_url,
            timeout=config.github_timeout_seconds,
            retry_policy=config.retry_policy,
        )
    except InputValidationError as exc:
        raise TriageConfigurationError(f"Invalid repository {config.repo!r}: {exc}") from exc


def load_prompt_template(config: TriageConfig) -> jinja2.Template:
    """Load the configured prompt template.

    Raises:
        TriageConfigurationError: If the template file cannot be read or does not parse.
    """
    try:
        return load_label_prompt_template(config.prompt_template_path)
    except (OSError, jinja2.TemplateError) as exc:
        raise TriageConfigurationError(f"Could not load prompt template {config.prompt_template_path}: {exc}") from exc


def create_models_client(config: TriageConfig) -> GitHubModelsClient:
    """Set up the model endpoint client. The caller owns closing it."""
    return GitHubModelsClient(
        token=config.github_token,
        api_endpoint=config.model.api_endpoint,
        model=config.model.name,
        temperature=config.model.temperature,
        max_tokens=config.model.max_tokens,
        timeout=config.model.timeout_seconds,
    )


async def run_select_next_workflow(config: TriageConfig) -> TriageIssue | None:
    """Fetch open issues and select the next one to work on.

    Raises:
        IssueFetchError: If the open issues could not be fetched.
    """
    tracker = await create_issue_tracker(config)
    issues = await fetch_open_issues(tracker)
    return select_next_issue(issues)


async def run_session_cycle_workflow(config: TriageConfig, context: SessionContext | None = None) -> SessionCycleResult:
    """Toggle the work/break session once."""
    context = context or SessionContext(state_path=config.state_file)
    tracker = await create_issue_tracker(config)
    return await run_session_cycle(context, tracker, config.break_suggestions)


async def run_label_issue_workflow(config: TriageConfig, issue_number: int) -> LabelingOutcome:
    """Fetch a single issue and label it."""
    template = load_prompt_template(config)
    tracker = await create_issue_tracker(config)
    issue = await tracker.get_issue(issue_number)
    async with create_models_client(config) as models_client:
        return await label_issue(issue, LabelClassifier(models_client), tracker, config.allowed_labels, template)


async def run_label_all_workflow(config: TriageConfig) -> LabelingReport:
    """Label every open issue of the repository.

    Raises:
        IssueFetchError: If the open issues could not be fetched.
    """
    template = load_prompt_template(config)
    tracker = await create_issue_tracker(config)

    start_time = time.time()
    issues = await fetch_open_issues(tracker)
    logger.info("Fetched open issues for labeling", issue_count=len(issues), duration=round(time.time() - start_time, 2))

    async with create_models_client(config) as models_client:
        return await label_all_issues(
            issues,
            LabelClassifier(models_client),
            tracker,
            config.allowed_labels,
            template,
            request_delay=config.request_delay_seconds,
        )


async def run_comment_workflow(config: TriageConfig, issue_number: int, body: str) -> None:
    """Post a comment on an issue."""
    tracker = await create_issue_tracker(config)
    await tracker.comment(issue_number, body)

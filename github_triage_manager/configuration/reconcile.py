"""Reconciles configuration between CLI arguments, environment variables and the configuration file.

Precedence is CLI argument, then environment variable, then configuration file, then default.
"""

from pathlib import Path

import structlog

from github_triage_manager.configuration.config import load_triage_config_file
from github_triage_manager.configuration.env import Settings
from github_triage_manager.configuration.exceptions import RequiredConfigurationElementError
from github_triage_manager.configuration.models import TriageConfig, TriageConfigFileModel
from github_triage_manager.configuration.secrets import resolve_github_token
from github_triage_manager.triage.labels import build_allowed_label_set
from github_triage_manager.utils.github import split_repository_in_configuration
from github_triage_manager.utils.retry import RetryPolicy

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def resolve_relative_to(path: Path, config_path: Path) -> Path:
    """Paths in the configuration file are relative to the file itself."""
    return path if path.is_absolute() else config_path.parent / path


async def reconcile_repository(cli_repo: str | None, env_repo: str | None, config_file: TriageConfigFileModel) -> tuple[str, str | None]:
    """Return the 'owner/repo' to operate on and the name of the environment it came from, if any."""
    if cli_repo:
        return cli_repo, None
    if env_repo:
        return env_repo, None
    environment_name = config_file.active_environment_name
    if environment_name is not None:
        return config_file.environments[environment_name].repository.full_name, environment_name
    raise RequiredConfigurationElementError(name="Repository", cli_name="--repo", env_name="REPO")


async def reconcile_state_file(cli_state_file: Path | None, settings: Settings, config_file: TriageConfigFileModel, config_path: Path) -> Path:
    """Return the location of the session state file."""
    if cli_state_file is not None:
        return cli_state_file
    if settings.STATE_FILE is not None:
        return settings.STATE_FILE
    return resolve_relative_to(config_file.state_file, config_path)


async def reconcile_triage_configuration(
    cli_config_path: Path | None = None,
    cli_repo: str | None = None,
    cli_github_api_url: str | None = None,
    cli_github_pat_token: str | None = None,
    cli_state_file: Path | None = None,
    cli_debug: bool = False,
    settings: Settings | None = None,
) -> TriageConfig:
    """Build the configuration used by every triage command."""
    settings = settings or Settings()
    config_path = cli_config_path or settings.TRIAGE_CONFIG
    config_file = load_triage_config_file(config_path)

    repo, environment_name = await reconcile_repository(cli_repo, settings.REPO, config_file)
    await split_repository_in_configuration(repo=repo)
    github_token = resolve_github_token(cli_github_pat_token or settings.GITHUB_PAT_TOKEN, settings.GITHUB_TOKEN_FILE, settings.GITHUB_TOKEN)

    model = config_file.model
    model_overrides = {key: value for key, value in {"api_endpoint": settings.MODELS_API_URL, "name": settings.MODEL_NAME}.items() if value}
    if model_overrides:
        model = model.model_copy(update=model_overrides)

    labels_config = config_file.labels
    allowed_labels = build_allowed_label_set(
        labels_config.allowed_labels if labels_config is not None else None,
        empty_config_means_allow_all=config_file.legacy.empty_config_means_allow_all,
    )

    prompt_template = config_file.labeling.prompt_template
    config = TriageConfig(
        debug=cli_debug or settings.DEBUG,
        github_api_url=cli_github_api_url or settings.GITHUB_API_URL or config_file.github.base_url,
        github_token=github_token,
        repo=repo,
        environment_name=environment_name,
        allowed_labels=allowed_labels,
        break_suggestions=tuple(config_file.break_suggestions),
        state_file=await reconcile_state_file(cli_state_file, settings, config_file, config_path),
        model=model,
        github_timeout_seconds=config_file.github.timeout_seconds,
        request_delay_seconds=config_file.labeling.request_delay_seconds,
        prompt_template_path=resolve_relative_to(prompt_template, config_path) if prompt_template is not None else None,
        retry_policy=RetryPolicy(retries=config_file.github.max_retries, delay=config_file.github.retry_delay_seconds),
    )
    logger.debug(
        "Reconciled configuration",
        repo=config.repo,
        environment=config.environment_name,
        github_api_url=config.github_api_url,
        state_file=str(config.state_file),
        allowed_labels=config.allowed_labels.describe(),
    )
    return config

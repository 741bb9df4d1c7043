"""Models for the triage configuration file and the reconciled configuration."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from github_triage_manager.triage.labels import AllowedLabelSet
from github_triage_manager.utils.constants import (
    DEFAULT_BREAK_SUGGESTIONS,
    DEFAULT_GITHUB_API_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MODEL_API_ENDPOINT,
    DEFAULT_MODEL_MAX_TOKENS,
    DEFAULT_MODEL_NAME,
    DEFAULT_MODEL_TEMPERATURE,
    DEFAULT_REQUEST_DELAY_SECONDS,
    DEFAULT_RETRY_DELAY_SECONDS,
    DEFAULT_STATE_FILE,
)
from github_triage_manager.utils.retry import RetryPolicy


class RepositoryModel(BaseModel):
    """Coordinates of the repository an environment targets."""

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        """The repository in 'owner/repo' form."""
        return f"{self.owner}/{self.repo}"


class EnvironmentModel(BaseModel):
    """A named target, e.g. a testing and a production repository."""

    active: bool = False
    repository: RepositoryModel


class GitHubApiModel(BaseModel):
    """Issue tracker connection tunables."""

    base_url: str = DEFAULT_GITHUB_API_URL
    timeout_seconds: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    retry_delay_seconds: float = Field(default=DEFAULT_RETRY_DELAY_SECONDS, ge=0)


class ModelEndpointModel(BaseModel):
    """Text-generation model settings."""

    name: str = DEFAULT_MODEL_NAME
    temperature: float = DEFAULT_MODEL_TEMPERATURE
    max_tokens: int = Field(default=DEFAULT_MODEL_MAX_TOKENS, gt=0)
    api_endpoint: str = DEFAULT_MODEL_API_ENDPOINT
    timeout_seconds: float = Field(default=10.0, gt=0)


class LabelsModel(BaseModel):
    """Labels the model may apply. Entries are validated later, when the allowed set is built."""

    allowed_labels: Any = None


class LegacyModel(BaseModel):
    """Backwards compatible behaviours."""

    empty_config_means_allow_all: bool = False


class LabelingModel(BaseModel):
    """Batch labeling tunables."""

    request_delay_seconds: float = Field(default=DEFAULT_REQUEST_DELAY_SECONDS, ge=0)
    prompt_template: Path | None = None


class TriageConfigFileModel(BaseModel):
    """Pydantic model for the triage YAML configuration file."""

    model_config = ConfigDict(extra="forbid")

    environments: dict[str, EnvironmentModel] = Field(default_factory=dict)
    github: GitHubApiModel = Field(default_factory=GitHubApiModel)
    model: ModelEndpointModel = Field(default_factory=ModelEndpointModel)
    labels: LabelsModel | None = None
    legacy: LegacyModel = Field(default_factory=LegacyModel)
    labeling: LabelingModel = Field(default_factory=LabelingModel)
    break_suggestions: list[str] = Field(default_factory=lambda: list(DEFAULT_BREAK_SUGGESTIONS))
    state_file: Path = Path(DEFAULT_STATE_FILE)

    @model_validator(mode="after")
    def _single_active_environment(self) -> "TriageConfigFileModel":
        if not self.environments:
            return self
        active = [name for name, environment in self.environments.items() if environment.active]
        if not active:
            raise ValueError("No active environment found in configuration")
        if len(active) > 1:
            raise ValueError(f"Multiple active environments found: {', '.join(active)}. Only one environment can be active.")
        return self

    @property
    def active_environment_name(self) -> str | None:
        """Name of the active environment, if environments are configured."""
        return next((name for name, environment in self.environments.items() if environment.active), None)


@dataclass
class TriageConfig:
    """Reconciled configuration for the triage commands."""

    debug: bool
    github_api_url: str
    github_token: str
    repo: str
    environment_name: str | None
    allowed_labels: AllowedLabelSet
    break_suggestions: tuple[str, ...]
    state_file: Path
    model: ModelEndpointModel
    github_timeout_seconds: float
    request_delay_seconds: float
    prompt_template_path: Path | None = None
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)

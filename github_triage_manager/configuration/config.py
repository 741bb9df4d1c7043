"""Loads the triage configuration file and switches its active environment."""

from pathlib import Path

import structlog
from pydantic import ValidationError
from ruamel.yaml.error import YAMLError

from github_triage_manager.configuration.exceptions import TriageConfigurationError
from github_triage_manager.configuration.models import TriageConfigFileModel
from github_triage_manager.utils.yaml import dump_yaml_to_file, load_yaml_file, load_yaml_file_round_trip

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def load_triage_config_file(config_path: Path) -> TriageConfigFileModel:
    """Load and validate the configuration file. A missing file means all defaults.

    Raises:
        TriageConfigurationError: If the file cannot be parsed or does not match the schema.
    """
    if not config_path.exists():
        logger.warning("Configuration file not found, using defaults", config_path=str(config_path))
        return TriageConfigFileModel()
    try:
        content = load_yaml_file(config_path)
    except YAMLError as exc:
        raise TriageConfigurationError(f"Failed to parse YAML file {config_path}: {exc}") from exc
    if content is None:
        return TriageConfigFileModel()
    if not isinstance(content, dict):
        raise TriageConfigurationError(f"Configuration file {config_path} must contain a mapping at the top level")
    try:
        return TriageConfigFileModel.model_validate(content)
    except ValidationError as exc:
        raise TriageConfigurationError(f"Invalid configuration in {config_path}: {exc}") from exc


def switch_active_environment(config_path: Path, environment_name: str) -> TriageConfigFileModel:
    """Mark ``environment_name`` as the only active environment, preserving the file's comments.

    Raises:
        TriageConfigurationError: If the file or the environment does not exist.
    """
    if not config_path.exists():
        raise TriageConfigurationError(f"Configuration file not found: {config_path}")
    document = load_yaml_file_round_trip(config_path)
    environments = (document or {}).get("environments") or {}
    if environment_name not in environments:
        available = ", ".join(environments) or "none"
        raise TriageConfigurationError(f'Environment "{environment_name}" not found in configuration (available: {available})')
    for name, environment in environments.items():
        environment["active"] = name == environment_name
    dump_yaml_to_file(document, config_path)
    logger.info("Switched active environment", config_path=str(config_path), environment=environment_name)
    return load_triage_config_file(config_path)

"""Locates the GitHub token used for both the issue tracker and the model endpoint."""

from pathlib import Path

import structlog

from github_triage_manager.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def load_token_from_file(token_file: Path) -> str | None:
    """Return the first non-empty line of a secrets file, or None if there is none."""
    try:
        content = token_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("Could not read token file", token_file=str(token_file), error=str(exc))
        return None
    for line in content.splitlines():
        if line.strip():
            return line.strip()
    logger.warning("Token file found but it holds no token", token_file=str(token_file))
    return None


def resolve_github_token(explicit_token: str | None, token_file: Path, fallback_env_token: str | None) -> str:
    """Pick the token: explicit (CLI or GITHUB_PAT_TOKEN), then the secrets file, then GITHUB_TOKEN.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If no source provides a token.
    """
    if explicit_token:
        return explicit_token
    token = load_token_from_file(token_file)
    if token:
        logger.debug("Using token from secrets file", token_file=str(token_file))
        return token
    if fallback_env_token:
        return fallback_env_token
    raise GitHubAuthenticationConfigurationUndefinedError(
        "No GitHub token provided. Use --github-pat-token, set GITHUB_PAT_TOKEN or GITHUB_TOKEN, "
        f"or write the token to {token_file}."
    )

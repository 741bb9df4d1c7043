"""Synchronous driver for configuration reconciliation for the CLI entry point."""

import asyncio
from pathlib import Path

from github_triage_manager.configuration import reconcile
from github_triage_manager.configuration.models import TriageConfig


def get_triage_config(
    config_path: Path | None = None,
    repo: str | None = None,
    github_api_url: str | None = None,
    github_pat_token: str | None = None,
    state_file: Path | None = None,
    debug: bool = False,
) -> TriageConfig:
    """Synchronously get the reconciled triage configuration."""
    return asyncio.run(
        reconcile.reconcile_triage_configuration(
            cli_config_path=config_path,
            cli_repo=repo,
            cli_github_api_url=github_api_url,
            cli_github_pat_token=github_pat_token,
            cli_state_file=state_file,
            cli_debug=debug,
        )
    )

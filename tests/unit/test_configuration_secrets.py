"""Unit tests for locating the GitHub token."""

from pathlib import Path

import pytest

from github_triage_manager.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError
from github_triage_manager.configuration.secrets import load_token_from_file, resolve_github_token


def test_load_token_from_file_first_non_empty_line(tmp_path: Path) -> None:
    """Leading blank lines and surrounding whitespace are ignored."""
    token_file = tmp_path / "github-token"
    token_file.write_text("\n  ghp_file_token  \nsecond line\n", encoding="utf-8")
    assert load_token_from_file(token_file) == "ghp_file_token"


def test_load_token_from_file_missing_or_blank(tmp_path: Path) -> None:
    """A missing or blank secrets file holds no token."""
    assert load_token_from_file(tmp_path / "missing") is None
    blank = tmp_path / "blank"
    blank.write_text("\n   \n", encoding="utf-8")
    assert load_token_from_file(blank) is None


def test_resolve_github_token_precedence(tmp_path: Path) -> None:
    """Explicit token, then secrets file, then the fallback environment token."""
    token_file = tmp_path / "github-token"
    token_file.write_text("ghp_file_token\n", encoding="utf-8")

    assert resolve_github_token("ghp_explicit", token_file, "ghp_env") == "ghp_explicit"
    assert resolve_github_token(None, token_file, "ghp_env") == "ghp_file_token"
    assert resolve_github_token(None, tmp_path / "missing", "ghp_env") == "ghp_env"


def test_resolve_github_token_missing(tmp_path: Path) -> None:
    """No token anywhere is an error."""
    with pytest.raises(GitHubAuthenticationConfigurationUndefinedError):
        resolve_github_token(None, tmp_path / "missing", None)

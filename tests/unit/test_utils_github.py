"""Contains unit tests for the utils.github module."""

import pytest

from github_triage_manager.exceptions import InputValidationError
from github_triage_manager.utils.github import split_repository_in_configuration, validate_issue_number, validate_path_segment


@pytest.mark.asyncio
async def test_split_repository_valid() -> None:
    """Test splitting a valid owner/repo string."""
    owner, repo = await split_repository_in_configuration("octocat/Hello-World")
    assert owner == "octocat"
    assert repo == "Hello-World"


@pytest.mark.asyncio
async def test_split_repository_missing() -> None:
    """Test that a missing repository is rejected."""
    with pytest.raises(InputValidationError, match="A repository is required"):
        await split_repository_in_configuration(None)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "malformed_repo",
    [
        pytest.param("", id="empty string"),
        pytest.param("/", id="only a slash"),
        pytest.param("octocat-HelloWorld", id="no slash"),
        pytest.param("owner/repo/extra", id="too many parts"),
        pytest.param("owner/../etc", id="traversal"),
        pytest.param("own er/repo", id="whitespace"),
    ],
)
async def test_split_repository_various_malformed(malformed_repo: str) -> None:
    """Test that ValueError is raised if repo is malformed (various cases)."""
    with pytest.raises(ValueError):
        await split_repository_in_configuration(malformed_repo)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "repo_input,expected_owner,expected_repo",
    [
        pytest.param("octocat/Hello-World", "octocat", "Hello-World", id="no slashes"),
        pytest.param("/octocat/Hello-World", "octocat", "Hello-World", id="leading slash"),
        pytest.param("octocat/Hello-World/", "octocat", "Hello-World", id="trailing slash"),
        pytest.param("/octocat/Hello-World/", "octocat", "Hello-World", id="both slashes"),
    ],
)
async def test_split_repository_strips_slashes(repo_input: str, expected_owner: str, expected_repo: str) -> None:
    """Test that leading/trailing slashes are stripped and owner/repo are parsed correctly."""
    owner, repo = await split_repository_in_configuration(repo_input)
    assert owner == expected_owner
    assert repo == expected_repo


@pytest.mark.parametrize(
    "segment",
    [
        pytest.param("octocat", id="plain"),
        pytest.param("my_repo-2.0", id="punctuation"),
        pytest.param("A", id="single character"),
    ],
)
def test_validate_path_segment_accepts(segment: str) -> None:
    """Valid segments are returned unchanged."""
    assert validate_path_segment(segment) == segment


@pytest.mark.parametrize(
    "segment",
    [
        pytest.param(None, id="none"),
        pytest.param(42, id="not a string"),
        pytest.param("", id="empty"),
        pytest.param("..", id="parent"),
        pytest.param(".hidden", id="leading period"),
        pytest.param("a..b", id="embedded parent"),
        pytest.param("owner/repo", id="slash"),
        pytest.param("repo?x=1", id="query"),
        pytest.param("repo\n", id="trailing newline"),
        pytest.param("répo", id="non ascii"),
    ],
)
def test_validate_path_segment_rejects(segment: object) -> None:
    """Invalid segments are rejected, never sanitized."""
    with pytest.raises(InputValidationError):
        validate_path_segment(segment)


@pytest.mark.parametrize(
    "issue_number",
    [
        pytest.param(0, id="zero"),
        pytest.param(-3, id="negative"),
        pytest.param("7", id="string"),
        pytest.param(True, id="bool"),
    ],
)
def test_validate_issue_number_rejects(issue_number: object) -> None:
    """Issue numbers must be positive integers."""
    with pytest.raises(InputValidationError):
        validate_issue_number(issue_number)


def test_validate_issue_number_accepts() -> None:
    """A positive integer passes through."""
    assert validate_issue_number(17) == 17

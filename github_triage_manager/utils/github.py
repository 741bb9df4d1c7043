"""Contains utility functions for GitHub interactions."""

from github_triage_manager.exceptions import InputValidationError
from github_triage_manager.utils.constants import PATH_SEGMENT_PATTERN


def validate_path_segment(segment: object) -> str:
    """Validate an owner or repository name before it is interpolated into a request path.

    Only alphanumeric characters, dashes, underscores and periods are allowed.
    Invalid input is rejected, never sanitized.

    Raises:
        InputValidationError: If the segment is not a non-empty string of allowed characters.
    """
    if segment is None:
        raise InputValidationError("Path segment cannot be None")
    if not isinstance(segment, str):
        raise InputValidationError(f"Invalid path segment: expected str but got {type(segment).__name__}")
    if not segment:
        raise InputValidationError("Path segment cannot be empty")
    if ".." in segment or segment.startswith("."):
        raise InputValidationError(f"Invalid path segment {segment!r}: potential path traversal detected")
    if not PATH_SEGMENT_PATTERN.fullmatch(segment):
        raise InputValidationError(
            f"Invalid path segment {segment!r}: path segments must only contain alphanumeric characters, dashes, underscores, or periods"
        )
    return segment


async def split_repository_in_configuration(repo: str | None) -> tuple[str, str]:
    """Splits the repository in the configuration into validated owner and repository names."""
    if repo is None:
        raise InputValidationError("A repository is required in the configuration.")
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise InputValidationError("Repository must be in the format 'owner/repo' with no leading/trailing slashes or extra parts.")
    owner, repository = parts
    return validate_path_segment(owner), validate_path_segment(repository)


def validate_issue_number(issue_number: object) -> int:
    """Ensure an issue number is a positive integer."""
    if isinstance(issue_number, bool) or not isinstance(issue_number, int):
        raise InputValidationError(f"Issue number must be an integer, got {type(issue_number).__name__}")
    if issue_number < 1:
        raise InputValidationError(f"Issue number must be positive, got {issue_number}")
    return issue_number

"""Issue tracker adapter for the githubkit library."""

import time
from functools import wraps
from typing import Any, Awaitable, Callable, Literal, Self, TypeVar

import httpx
import structlog
from githubkit import Response
from githubkit.exception import (
    PrimaryRateLimitExceeded,
    RequestError,
    RequestFailed,
    RequestTimeout,
    SecondaryRateLimitExceeded,
)
from githubkit.versions.latest.models import Issue, IssueComment, Label

from github_triage_manager.exceptions import (
    InputValidationError,
    RateLimitError,
    TrackerRequestError,
    TransientNetworkError,
)
from github_triage_manager.triage.models import TriageIssue
from github_triage_manager.utils.constants import (
    DEFAULT_GITHUB_API_URL,
    DEFAULT_RATE_LIMIT_RETRY_AFTER_SECONDS,
    ISSUES_PER_PAGE,
)
from github_triage_manager.utils.github import split_repository_in_configuration, validate_issue_number, validate_path_segment
from github_triage_manager.utils.retry import RetryPolicy, retry_transient_errors

from .abc import IssueTrackerBase
from .client import GitHubClient, get_github_token_client

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

TRANSIENT_STATUS_CODES = {408, 500, 502, 503, 504}


def _response_body(response: Any) -> Any:
    try:
        return response.json()
    except Exception:
        return getattr(response, "text", None)


def is_rate_limited(status_code: int, response: Any) -> bool:
    """GitHub signals rate limits with 429, or with 403 and an exhausted quota."""
    if status_code == 429:
        return True
    if status_code != 403:
        return False
    headers = getattr(response, "headers", None) or {}
    if headers.get("x-ratelimit-remaining") == "0":
        return True
    return "rate limit" in str(_response_body(response)).lower()


def rate_limit_retry_after(response: Any) -> float:
    """Work out how long the server asked us to wait from rate limit response headers."""
    headers = getattr(response, "headers", None) or {}
    retry_after = headers.get("retry-after")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=retry_after)
    rate_limit_reset = headers.get("x-ratelimit-reset")
    if rate_limit_reset:
        try:
            wait_time = int(rate_limit_reset) - int(time.time()) + 1
            if wait_time > 0:
                return float(wait_time)
        except ValueError:
            logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=rate_limit_reset)
    return DEFAULT_RATE_LIMIT_RETRY_AFTER_SECONDS


def translate_github_errors(func: F) -> F:
    """Decorator translating githubkit failures into the triage error taxonomy.

    - Rate limit exceptions, HTTP 429 and rate-limited 403 responses become RateLimitError.
    - Timeouts, transport errors, 408 and 5xx become TransientNetworkError.
    - 422 becomes InputValidationError.
    - Any other HTTP failure becomes TrackerRequestError.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded) as exc:
            retry_after = exc.retry_after.total_seconds() if getattr(exc, "retry_after", None) else DEFAULT_RATE_LIMIT_RETRY_AFTER_SECONDS
            logger.warning(
                "GitHub rate limit exceeded",
                function=func.__name__,
                rate_limit_type="primary" if isinstance(exc, PrimaryRateLimitExceeded) else "secondary",
                retry_after=retry_after,
            )
            raise RateLimitError(f"GitHub rate limit exceeded in {func.__name__}. Retry after {retry_after} seconds.", retry_after=retry_after) from exc
        except RequestFailed as exc:
            status_code = exc.response.status_code
            if is_rate_limited(status_code, exc.response):
                retry_after = rate_limit_retry_after(exc.response)
                logger.warning("GitHub rate limit exceeded", function=func.__name__, status_code=status_code, retry_after=retry_after)
                raise RateLimitError(
                    f"GitHub rate limit exceeded in {func.__name__}. Retry after {retry_after} seconds.", retry_after=retry_after
                ) from exc
            if status_code in TRANSIENT_STATUS_CODES:
                raise TransientNetworkError(f"GitHub returned {status_code} in {func.__name__}", status_code=status_code) from exc
            error_data = _response_body(exc.response)
            logger.error(
                "GitHub request failed",
                function=func.__name__,
                status_code=status_code,
                response=error_data,
                url=str(getattr(exc.response, "url", "")),
            )
            if status_code == 422:
                raise InputValidationError(f"GitHub 422 error in {func.__name__}: {error_data}") from exc
            raise TrackerRequestError(f"GitHub {status_code} error in {func.__name__}", status_code=status_code, response_body=error_data) from exc
        except (RequestTimeout, RequestError, httpx.TransportError) as exc:
            raise TransientNetworkError(f"Network error in {func.__name__}: {exc}") from exc

    return wrapper  # type: ignore


class GitHubKitAdapter(IssueTrackerBase):
    """Issue tracker adapter for the githubkit library.

    Read operations are idempotent and retried with exponential backoff on
    transient errors. Writes are attempted once.
    """

    def __init__(self, client: GitHubClient, owner: str, repo_name: str, retry_policy: RetryPolicy | None = None) -> None:
        """Initialize the adapter with an already-initialized client and validated repository coordinates."""
        self.client = client
        self.owner = validate_path_segment(owner)
        self.repo_name = validate_path_segment(repo_name)
        self.retry_policy = retry_policy or RetryPolicy()

    def _omit_null_parameters(self, **kwargs: Any) -> dict[str, Any]:
        """Omit parameters that are None."""
        return {k: v for k, v in kwargs.items() if v is not None}

    @classmethod
    async def create(
        cls,
        repo: str,
        github_token: str,
        github_api_url: str = DEFAULT_GITHUB_API_URL,
        timeout: float | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> Self:
        """Create a new adapter for an 'owner/repo' repository.

        Raises:
            InputValidationError: If the repository coordinates are malformed.
            RuntimeError: If no token is supplied.
        """
        owner, repo_name = await split_repository_in_configuration(repo=repo)
        logger.info("Creating client for GitHub instance and repository", github_api_url=github_api_url, owner=owner, repo_name=repo_name)
        client = await get_github_token_client(github_token=github_token, github_api_url=github_api_url, timeout=timeout)
        return cls(client, owner, repo_name, retry_policy=retry_policy)

    # Issue reads
    @retry_transient_errors
    @translate_github_errors
    async def list_open_issues(self) -> list[TriageIssue]:
        """List all open issues, handling pagination and excluding pull requests."""
        open_issues: list[TriageIssue] = []
        page: int = 1
        while True:
            response: Response[list[Issue]] = await self.client.rest.issues.async_list_for_repo(
                owner=self.owner,
                repo=self.repo_name,
                state="open",
                per_page=ISSUES_PER_PAGE,
                page=page,
            )
            issues: list[Issue] = response.parsed_data
            if not issues:
                break
            # The issues endpoint returns pull requests as well.
            open_issues.extend(TriageIssue.from_github_issue(issue) for issue in issues if not getattr(issue, "pull_request", None))
            if len(issues) < ISSUES_PER_PAGE:
                break
            page += 1
        logger.info("Fetched open issues", owner=self.owner, repo_name=self.repo_name, issue_count=len(open_issues))
        return open_issues

    @retry_transient_errors
    @translate_github_errors
    async def get_issue(self, issue_number: int) -> TriageIssue:
        """Get a single issue."""
        validate_issue_number(issue_number)
        response: Response[Issue] = await self.client.rest.issues.async_get(owner=self.owner, repo=self.repo_name, issue_number=issue_number)
        issue = response.parsed_data
        if getattr(issue, "pull_request", None):
            raise InputValidationError(f"#{issue_number} is a pull request, not an issue")
        return TriageIssue.from_github_issue(issue)

    @retry_transient_errors
    @translate_github_errors
    async def list_comments(self, issue_number: int) -> list[IssueComment]:
        """List the comments of an issue."""
        validate_issue_number(issue_number)
        response: Response[list[IssueComment]] = await self.client.rest.issues.async_list_comments(
            owner=self.owner, repo=self.repo_name, issue_number=issue_number
        )
        return response.parsed_data

    # Issue writes
    @translate_github_errors
    async def apply_labels(self, issue_number: int, labels: list[str]) -> list[str]:
        """Add labels to an issue, keeping the labels it already carries."""
        validate_issue_number(issue_number)
        if not labels:
            logger.debug("No labels to apply", issue_number=issue_number)
            return []
        response: Response[list[Label]] = await self.client.rest.issues.async_add_labels(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            labels=labels,
        )
        applied = [label.name.lower() for label in response.parsed_data]
        logger.info("Applied labels", issue_number=issue_number, labels=labels)
        return applied

    @translate_github_errors
    async def remove_label(self, issue_number: int, name: str) -> None:
        """Remove a single label from an issue."""
        validate_issue_number(issue_number)
        await self.client.rest.issues.async_remove_label(owner=self.owner, repo=self.repo_name, issue_number=issue_number, name=name)

    @translate_github_errors
    async def update_issue(
        self,
        issue_number: int,
        title: str | None = None,
        body: str | None = None,
        labels: list[str] | None = None,
        state: Literal["open", "closed"] | None = None,
        **kwargs: Any,
    ) -> TriageIssue:
        """Update an issue, sending only the fields that were given."""
        validate_issue_number(issue_number)
        params = self._omit_null_parameters(title=title, body=body, labels=labels, state=state, **kwargs)
        if not params:
            raise InputValidationError(f"No fields given to update issue #{issue_number}")
        response: Response[Issue] = await self.client.rest.issues.async_update(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            **params,
        )
        return TriageIssue.from_github_issue(response.parsed_data)

    @translate_github_errors
    async def comment(self, issue_number: int, body: str) -> IssueComment:
        """Post a comment on an issue."""
        validate_issue_number(issue_number)
        if not body or not body.strip():
            raise InputValidationError("Comment body cannot be empty")
        response: Response[IssueComment] = await self.client.rest.issues.async_create_comment(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            body=body,
        )
        logger.info("Commented on issue", issue_number=issue_number)
        return response.parsed_data

"""Unit tests for the GitHubKitAdapter class and related GitHub operations."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from githubkit.exception import PrimaryRateLimitExceeded, RequestFailed

from github_triage_manager.exceptions import InputValidationError, RateLimitError, TrackerRequestError, TransientNetworkError
from github_triage_manager.github.adapter import GitHubKitAdapter, rate_limit_retry_after
from github_triage_manager.utils.constants import ISSUES_PER_PAGE
from github_triage_manager.utils.retry import RetryPolicy


class DummyResponse:
    """A dummy response object to mock GitHub API responses."""

    def __init__(self, parsed_data: Any = None, status_code: int = 200) -> None:
        """Initialize the dummy response with parsed data and a status code."""
        self.status_code: int = status_code
        self.parsed_data = parsed_data


class DummyErrorResponse:
    """The parts of a failed githubkit response the adapter reads."""

    def __init__(self, status_code: int, headers: dict[str, str] | None = None, body: Any = None) -> None:
        """Initialize the failed response."""
        self.status_code = status_code
        self.headers = headers or {}
        self.body = body
        self.url = "https://api.github.com/repos/owner/repo/issues"

    def json(self) -> Any:
        """Return the response body."""
        return self.body


class DummyRequestFailed(RequestFailed):
    """A RequestFailed carrying a dummy response."""

    def __init__(self, status_code: int, headers: dict[str, str] | None = None, body: Any = None) -> None:
        """Initialize the exception without a real HTTP exchange."""
        Exception.__init__(self, f"Request failed with status {status_code}")
        self.response = DummyErrorResponse(status_code, headers, body)  # type: ignore[assignment]


class DummyPrimaryRateLimitExceeded(PrimaryRateLimitExceeded):
    """A primary rate limit error with a known retry-after interval."""

    def __init__(self, retry_after: timedelta) -> None:
        """Initialize the exception without a real HTTP exchange."""
        Exception.__init__(self, "Primary rate limit exceeded")
        self.response = DummyErrorResponse(403)  # type: ignore[assignment]
        self.retry_after = retry_after


def raw_issue(number: int, labels: list[str] | None = None, pull_request: Any = None) -> SimpleNamespace:
    return SimpleNamespace(
        number=number,
        title=f"Issue {number}",
        body="Body",
        labels=[SimpleNamespace(name=label) for label in labels or []],
        updated_at=datetime(2023, 5, 1, tzinfo=timezone.utc),
        html_url=f"https://github.com/owner/repo/issues/{number}",
        pull_request=pull_request,
    )


def make_adapter() -> GitHubKitAdapter:
    return GitHubKitAdapter(MagicMock(), "owner", "repo", retry_policy=RetryPolicy(retries=2, delay=0, jitter=0))


@pytest.mark.parametrize(
    ("owner", "repo"),
    [
        pytest.param("../etc", "repo", id="owner traversal"),
        pytest.param("owner", "re po", id="repo whitespace"),
        pytest.param("", "repo", id="empty owner"),
    ],
)
def test_adapter_rejects_invalid_coordinates(owner: str, repo: str) -> None:
    """Owner and repository names are validated before any request."""
    with pytest.raises(InputValidationError):
        GitHubKitAdapter(MagicMock(), owner, repo)


@pytest.mark.asyncio
async def test_create_rejects_malformed_repository() -> None:
    """Malformed repository strings never reach the client."""
    with pytest.raises(InputValidationError):
        await GitHubKitAdapter.create("owner/repo/extra", github_token="token")


@pytest.mark.asyncio
async def test_list_open_issues_paginates_and_filters_pull_requests() -> None:
    """All pages are fetched and pull requests are dropped."""
    adapter = make_adapter()
    first_page = [raw_issue(number) for number in range(1, ISSUES_PER_PAGE + 1)]
    first_page[0] = raw_issue(1, pull_request={"url": "https://api.github.com/repos/owner/repo/pulls/1"})
    second_page = [raw_issue(ISSUES_PER_PAGE + 1, labels=["Urgent"])]
    adapter.client.rest.issues.async_list_for_repo = AsyncMock(side_effect=[DummyResponse(first_page), DummyResponse(second_page)])

    issues = await adapter.list_open_issues()

    assert len(issues) == ISSUES_PER_PAGE
    assert issues[0].number == 2
    assert issues[-1].labels == frozenset({"urgent"})
    assert adapter.client.rest.issues.async_list_for_repo.await_count == 2
    _, kwargs = adapter.client.rest.issues.async_list_for_repo.await_args
    assert kwargs["state"] == "open"
    assert kwargs["page"] == 2


@pytest.mark.asyncio
async def test_list_open_issues_retries_transient_errors() -> None:
    """Server errors are retried and the read eventually succeeds."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_list_for_repo = AsyncMock(side_effect=[DummyRequestFailed(502), DummyResponse([raw_issue(5)])])

    issues = await adapter.list_open_issues()

    assert [issue.number for issue in issues] == [5]
    assert adapter.client.rest.issues.async_list_for_repo.await_count == 2


@pytest.mark.asyncio
async def test_list_open_issues_gives_up_after_retries() -> None:
    """Persistent transport failures surface as TransientNetworkError."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_list_for_repo = AsyncMock(side_effect=httpx.ConnectError("connection refused"))

    with pytest.raises(TransientNetworkError):
        await adapter.list_open_issues()
    assert adapter.client.rest.issues.async_list_for_repo.await_count == 3


@pytest.mark.asyncio
async def test_list_open_issues_rate_limit_is_not_retried() -> None:
    """HTTP 429 becomes RateLimitError carrying the retry-after header."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_list_for_repo = AsyncMock(side_effect=DummyRequestFailed(429, headers={"retry-after": "42"}))

    with pytest.raises(RateLimitError) as exc_info:
        await adapter.list_open_issues()
    assert exc_info.value.retry_after == 42.0
    assert adapter.client.rest.issues.async_list_for_repo.await_count == 1


@pytest.mark.asyncio
async def test_primary_rate_limit_exception_is_translated() -> None:
    """githubkit's rate limit exceptions keep their retry-after interval."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_list_for_repo = AsyncMock(side_effect=DummyPrimaryRateLimitExceeded(timedelta(seconds=90)))

    with pytest.raises(RateLimitError) as exc_info:
        await adapter.list_open_issues()
    assert exc_info.value.retry_after == 90.0


@pytest.mark.asyncio
async def test_forbidden_with_exhausted_quota_is_rate_limit() -> None:
    """A 403 with no remaining quota is treated as a rate limit."""
    adapter = make_adapter()
    error = DummyRequestFailed(403, headers={"x-ratelimit-remaining": "0"}, body={"message": "API rate limit exceeded"})
    adapter.client.rest.issues.async_get = AsyncMock(side_effect=error)

    with pytest.raises(RateLimitError):
        await adapter.get_issue(3)


@pytest.mark.asyncio
async def test_forbidden_without_rate_limit_is_request_error() -> None:
    """Other 403 responses are not retried and not treated as rate limits."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_get = AsyncMock(side_effect=DummyRequestFailed(403, body={"message": "Resource not accessible"}))

    with pytest.raises(TrackerRequestError) as exc_info:
        await adapter.get_issue(3)
    assert exc_info.value.status_code == 403
    assert adapter.client.rest.issues.async_get.await_count == 1


@pytest.mark.asyncio
async def test_get_issue_rejects_pull_requests() -> None:
    """A pull request number is not an issue."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_get = AsyncMock(return_value=DummyResponse(raw_issue(9, pull_request={"url": "x"})))

    with pytest.raises(InputValidationError):
        await adapter.get_issue(9)


@pytest.mark.asyncio
@pytest.mark.parametrize("issue_number", [0, -1])
async def test_get_issue_rejects_invalid_numbers(issue_number: int) -> None:
    """Invalid issue numbers never reach the client."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_get = AsyncMock()

    with pytest.raises(InputValidationError):
        await adapter.get_issue(issue_number)
    adapter.client.rest.issues.async_get.assert_not_awaited()


@pytest.mark.asyncio
async def test_apply_labels_adds_labels() -> None:
    """Labels are added and the resulting label names returned in lowercase."""
    adapter = make_adapter()
    labels = [SimpleNamespace(name="Bug"), SimpleNamespace(name="urgent")]
    adapter.client.rest.issues.async_add_labels = AsyncMock(return_value=DummyResponse(labels))

    applied = await adapter.apply_labels(4, ["urgent"])

    assert applied == ["bug", "urgent"]
    adapter.client.rest.issues.async_add_labels.assert_awaited_once_with(owner="owner", repo="repo", issue_number=4, labels=["urgent"])


@pytest.mark.asyncio
async def test_apply_labels_empty_is_noop() -> None:
    """Nothing is sent when there are no labels."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_add_labels = AsyncMock()

    assert await adapter.apply_labels(4, []) == []
    adapter.client.rest.issues.async_add_labels.assert_not_awaited()


@pytest.mark.asyncio
async def test_writes_are_not_retried() -> None:
    """A transient failure on a write surfaces immediately."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_add_labels = AsyncMock(side_effect=DummyRequestFailed(503))

    with pytest.raises(TransientNetworkError):
        await adapter.apply_labels(4, ["urgent"])
    assert adapter.client.rest.issues.async_add_labels.await_count == 1


@pytest.mark.asyncio
async def test_unprocessable_entity_is_validation_error() -> None:
    """HTTP 422 is reported as invalid input."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_add_labels = AsyncMock(side_effect=DummyRequestFailed(422, body={"message": "Validation Failed"}))

    with pytest.raises(InputValidationError, match="Validation Failed"):
        await adapter.apply_labels(4, ["urgent"])


@pytest.mark.asyncio
async def test_comment_posts_body() -> None:
    """Comments are created with the given body."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_create_comment = AsyncMock(return_value=DummyResponse(SimpleNamespace(body="Looking into it")))

    comment = await adapter.comment(8, "Looking into it")

    assert comment.body == "Looking into it"
    adapter.client.rest.issues.async_create_comment.assert_awaited_once_with(owner="owner", repo="repo", issue_number=8, body="Looking into it")


@pytest.mark.asyncio
async def test_comment_rejects_empty_body() -> None:
    """Blank comments are rejected locally."""
    adapter = make_adapter()
    with pytest.raises(InputValidationError):
        await adapter.comment(8, "   ")


@pytest.mark.asyncio
async def test_update_issue_sends_only_given_fields() -> None:
    """None values are omitted from the update request."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_update = AsyncMock(return_value=DummyResponse(raw_issue(6)))

    issue = await adapter.update_issue(6, state="closed")

    assert issue.number == 6
    adapter.client.rest.issues.async_update.assert_awaited_once_with(owner="owner", repo="repo", issue_number=6, state="closed")


@pytest.mark.asyncio
async def test_update_issue_requires_fields() -> None:
    """An update without fields is rejected."""
    adapter = make_adapter()
    with pytest.raises(InputValidationError):
        await adapter.update_issue(6)


@pytest.mark.asyncio
async def test_remove_label() -> None:
    """A single label is removed by name."""
    adapter = make_adapter()
    adapter.client.rest.issues.async_remove_label = AsyncMock(return_value=DummyResponse([]))

    await adapter.remove_label(6, "urgent")

    adapter.client.rest.issues.async_remove_label.assert_awaited_once_with(owner="owner", repo="repo", issue_number=6, name="urgent")


def test_rate_limit_retry_after_defaults() -> None:
    """Without usable headers the default wait applies."""
    assert rate_limit_retry_after(DummyErrorResponse(429, headers={"retry-after": "soon"})) == 60.0
    assert rate_limit_retry_after(DummyErrorResponse(429)) == 60.0

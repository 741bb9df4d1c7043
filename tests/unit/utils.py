"""Shared helpers for unit tests."""

from typing import Any, Literal

from github_triage_manager.github.abc import IssueTrackerBase
from github_triage_manager.triage.models import TriageIssue


def make_issue(number: int, labels: list[str] | None = None, updated_at: Any = "2023-05-01T00:00:00Z", title: str | None = None, body: str = "") -> TriageIssue:
    """Build a triage issue with sensible defaults."""
    return TriageIssue(
        number=number,
        title=title if title is not None else f"Issue {number}",
        body=body,
        labels=labels or [],
        updated_at=updated_at,
        html_url=f"https://github.com/octocat/hello-world/issues/{number}",
    )


class FakeIssueTracker(IssueTrackerBase):
    """In-memory issue tracker recording the writes made against it."""

    def __init__(self, issues: list[TriageIssue] | None = None, list_error: Exception | None = None) -> None:
        self.issues = {issue.number: issue for issue in issues or []}
        self.list_error = list_error
        self.apply_label_errors: dict[int, Exception] = {}
        self.applied_labels: list[tuple[int, list[str]]] = []
        self.comments: list[tuple[int, str]] = []
        self.list_calls = 0

    async def list_open_issues(self) -> list[TriageIssue]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.issues.values())

    async def get_issue(self, issue_number: int) -> TriageIssue:
        return self.issues[issue_number]

    async def apply_labels(self, issue_number: int, labels: list[str]) -> list[str]:
        if issue_number in self.apply_label_errors:
            raise self.apply_label_errors[issue_number]
        self.applied_labels.append((issue_number, labels))
        return sorted(self.issues[issue_number].labels | set(labels))

    async def remove_label(self, issue_number: int, name: str) -> None:
        pass

    async def update_issue(
        self,
        issue_number: int,
        title: str | None = None,
        body: str | None = None,
        labels: list[str] | None = None,
        state: Literal["open", "closed"] | None = None,
        **kwargs: Any,
    ) -> TriageIssue:
        return self.issues[issue_number]

    async def comment(self, issue_number: int, body: str) -> Any:
        self.comments.append((issue_number, body))
        return {"body": body}

    async def list_comments(self, issue_number: int) -> list[Any]:
        return [{"body": body} for number, body in self.comments if number == issue_number]

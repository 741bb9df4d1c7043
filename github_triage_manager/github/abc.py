"""Base ABC for issue tracker clients."""

from abc import ABC, abstractmethod
from typing import Any, Literal

from github_triage_manager.triage.models import TriageIssue


class IssueTrackerBase(ABC):
    """Base ABC for issue tracker clients used by the triage workflows."""

    # Issue reads
    @abstractmethod
    async def list_open_issues(self) -> list[TriageIssue]:
        """List all open issues (pull requests excluded) with normalized labels."""
        pass

    @abstractmethod
    async def get_issue(self, issue_number: int) -> TriageIssue:
        """Get a single issue with normalized labels."""
        pass

    # Issue writes
    @abstractmethod
    async def apply_labels(self, issue_number: int, labels: list[str]) -> list[str]:
        """Add labels to an issue, returning the issue's resulting label names."""
        pass

    @abstractmethod
    async def remove_label(self, issue_number: int, name: str) -> None:
        """Remove a single label from an issue."""
        pass

    @abstractmethod
    async def update_issue(
        self,
        issue_number: int,
        title: str | None = None,
        body: str | None = None,
        labels: list[str] | None = None,
        state: Literal["open", "closed"] | None = None,
        **kwargs: Any,
    ) -> TriageIssue:
        """Update fields of an issue."""
        pass

    # Comments
    @abstractmethod
    async def comment(self, issue_number: int, body: str) -> Any:
        """Post a comment on an issue."""
        pass

    @abstractmethod
    async def list_comments(self, issue_number: int) -> list[Any]:
        """List the comments of an issue."""
        pass

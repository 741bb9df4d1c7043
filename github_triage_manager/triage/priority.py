"""Selects the one open issue that matters right now.

Candidates are narrowed by a cascade of label filters. A stage whose label
matches no candidate is a no-op, so the working set never becomes empty
once the input is non-empty. The survivor with the oldest update time wins,
ties going to the earliest issue in input order.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, Sequence

import structlog

from github_triage_manager.exceptions import IssueFetchError, TriageError
from github_triage_manager.github.abc import IssueTrackerBase
from github_triage_manager.triage.labels import extract_label_name, normalize_label
from github_triage_manager.triage.models import TriageIssue
from github_triage_manager.utils.constants import CONTROL_CHARACTER_PATTERN, PRIORITY_LABEL_CASCADE

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def issue_has_label(issue: Any, label: str) -> bool:
    """Case-insensitive label check that tolerates raw label representations."""
    wanted = normalize_label(label)
    for existing in getattr(issue, "labels", None) or ():
        name = extract_label_name(existing)
        if name is not None and normalize_label(name) == wanted:
            return True
    return False


def filter_issues_with_label(issues: Iterable[TriageIssue], label: str) -> list[TriageIssue]:
    """Return the issues carrying ``label``, preserving input order."""
    return [issue for issue in issues if issue_has_label(issue, label)]


def apply_label_stage(candidates: list[TriageIssue], label: str) -> list[TriageIssue]:
    """Narrow the candidates to those carrying ``label`` if any do, otherwise keep them all.

    Errors raised while inspecting label data degrade the stage to a no-op.
    """
    try:
        matching = filter_issues_with_label(candidates, label)
    except Exception as exc:
        logger.warning("Label filter failed, skipping stage", label=label, error=str(exc), error_type=type(exc).__name__)
        return candidates
    if not matching:
        logger.debug("No candidates carry label, stage does not apply", label=label, candidate_count=len(candidates))
        return candidates
    logger.info("Prioritizing issues with label", label=label, matching_count=len(matching), candidate_count=len(candidates))
    return matching


def _oldest_update_first(issue: TriageIssue) -> tuple[bool, datetime]:
    updated_at = getattr(issue, "updated_at", None)
    if not isinstance(updated_at, datetime):
        return (True, _EPOCH)
    return (False, updated_at)


def select_next_issue(issues: Sequence[TriageIssue], label_cascade: Sequence[str] = PRIORITY_LABEL_CASCADE) -> TriageIssue | None:
    """Pick the next issue to work on, or None when there are no issues.

    Issues without a usable update time sort after all dated issues and keep
    their relative input order.
    """
    if not issues:
        logger.info("No open issues available for selection")
        return None

    candidates = list(issues)
    for label in label_cascade:
        candidates = apply_label_stage(candidates, label)

    for issue in candidates:
        if not isinstance(getattr(issue, "updated_at", None), datetime):
            logger.warning("Issue has no usable update time, ordering it last", issue_number=getattr(issue, "number", None))

    # sorted() is stable, so equal timestamps keep input order.
    selected = sorted(candidates, key=_oldest_update_first)[0]
    logger.info("Selected next issue", issue_number=selected.number, candidate_count=len(candidates))
    return selected


def sanitize_for_terminal(text: str | None) -> str:
    """Strip control characters that could inject terminal escape sequences."""
    return CONTROL_CHARACTER_PATTERN.sub("", text) if text else ""


def format_issue_report(issue: TriageIssue) -> str:
    """Render the selected issue for console output."""
    updated = issue.updated_at.isoformat() if issue.updated_at else "unknown"
    labels = ", ".join(sorted(issue.labels)) or "none"
    return "\n".join(
        [
            f"#{issue.number}: {sanitize_for_terminal(issue.title)}",
            f"URL: {issue.html_url or 'No URL'}",
            f"Last updated: {updated}",
            f"Labels: {labels}",
        ]
    )


async def fetch_open_issues(tracker: IssueTrackerBase) -> list[TriageIssue]:
    """Fetch the open issues to select from.

    Raises:
        IssueFetchError: If the tracker could not deliver the issues, wrapping the cause.
    """
    try:
        return await tracker.list_open_issues()
    except TriageError as exc:
        logger.error("Failed to fetch open issues", error=str(exc), error_type=type(exc).__name__)
        raise IssueFetchError(f"Failed to fetch open issues: {exc}") from exc

"""Labels open issues with the urgency and importance suggested by the model.

Issues are processed one at a time with a pause in between to stay clear
of external rate limits. A failure on one issue is recorded and the batch
moves on.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

import jinja2
import structlog

from github_triage_manager.classifier.adapter import LabelClassifier
from github_triage_manager.exceptions import ModelResponseParseError, RateLimitError
from github_triage_manager.github.abc import IssueTrackerBase
from github_triage_manager.triage.labels import AllowedLabelSet
from github_triage_manager.triage.models import TriageIssue
from github_triage_manager.utils.constants import DEFAULT_REQUEST_DELAY_SECONDS
from github_triage_manager.utils.templates import render_template_with_model

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class LabelingAction(str, Enum):
    """What happened to an issue that was processed successfully."""

    LABELS_APPLIED = "labels_applied"
    SKIPPED_NO_ALLOWED_LABELS = "skipped_no_allowed_labels"
    SKIPPED_ALREADY_LABELED = "skipped_already_labeled"


class LabelingFailureReason(str, Enum):
    """Why an issue could not be processed."""

    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    MODEL_RESPONSE_UNPARSEABLE = "model_response_unparseable"
    ERROR = "error"


@dataclass
class LabelingOutcome:
    """Result of processing a single issue."""

    issue_number: int
    success: bool
    action: LabelingAction | None = None
    labels: list[str] = field(default_factory=list)
    reason: LabelingFailureReason | None = None
    error: str | None = None
    retry_after: float | None = None


@dataclass
class LabelingSummary:
    """Counters for a batch. ``success + failed == total`` always holds."""

    total: int = 0
    success: int = 0
    failed: int = 0
    labeled: int = 0
    skipped: int = 0

    def record(self, outcome: LabelingOutcome) -> None:
        """Count one outcome."""
        self.total += 1
        if not outcome.success:
            self.failed += 1
            return
        self.success += 1
        if outcome.action is LabelingAction.LABELS_APPLIED:
            self.labeled += 1
        else:
            self.skipped += 1


@dataclass
class LabelingReport:
    """Summary plus per-issue outcomes of a batch."""

    summary: LabelingSummary
    results: list[LabelingOutcome]

    @property
    def failures(self) -> list[LabelingOutcome]:
        """The outcomes that did not succeed."""
        return [result for result in self.results if not result.success]


def build_label_prompt(issue: TriageIssue, template: jinja2.Template) -> str:
    """Render the classification prompt for an issue."""
    return render_template_with_model(issue, template)


async def label_issue(
    issue: TriageIssue,
    classifier: LabelClassifier,
    tracker: IssueTrackerBase,
    allowed_labels: AllowedLabelSet,
    prompt_template: jinja2.Template,
) -> LabelingOutcome:
    """Classify one issue and apply the allowed labels it does not carry yet.

    Never raises: every failure is turned into an unsuccessful outcome.
    """
    log = logger.bind(issue_number=issue.number)
    try:
        prompt = build_label_prompt(issue, prompt_template)
        classification = await classifier.classify(prompt)

        candidates = allowed_labels.filter(classification.suggested_labels())
        if not candidates:
            log.info("No suggested labels are allowed", urgency=classification.urgency, importance=classification.importance)
            return LabelingOutcome(issue_number=issue.number, success=True, action=LabelingAction.SKIPPED_NO_ALLOWED_LABELS)

        new_labels = [label for label in candidates if not issue.has_label(label)]
        if not new_labels:
            log.info("Issue already carries the suggested labels", labels=candidates)
            return LabelingOutcome(issue_number=issue.number, success=True, action=LabelingAction.SKIPPED_ALREADY_LABELED, labels=candidates)

        await tracker.apply_labels(issue.number, new_labels)
        log.info("Labels applied", labels=new_labels)
        return LabelingOutcome(issue_number=issue.number, success=True, action=LabelingAction.LABELS_APPLIED, labels=new_labels)
    except RateLimitError as exc:
        log.warning("Rate limit exceeded, skipping issue", retry_after=exc.retry_after)
        return LabelingOutcome(
            issue_number=issue.number,
            success=False,
            reason=LabelingFailureReason.RATE_LIMIT_EXCEEDED,
            error=str(exc),
            retry_after=exc.retry_after,
        )
    except ModelResponseParseError as exc:
        log.error("Model response unparseable", raw_response=exc.raw_response)
        return LabelingOutcome(issue_number=issue.number, success=False, reason=LabelingFailureReason.MODEL_RESPONSE_UNPARSEABLE, error=str(exc))
    except Exception as exc:
        log.error("Failed to label issue", error=str(exc), error_type=type(exc).__name__)
        return LabelingOutcome(issue_number=issue.number, success=False, reason=LabelingFailureReason.ERROR, error=str(exc))


async def label_all_issues(
    issues: Sequence[TriageIssue],
    classifier: LabelClassifier,
    tracker: IssueTrackerBase,
    allowed_labels: AllowedLabelSet,
    prompt_template: jinja2.Template,
    request_delay: float = DEFAULT_REQUEST_DELAY_SECONDS,
) -> LabelingReport:
    """Label every issue sequentially, pausing ``request_delay`` seconds between issues."""
    summary = LabelingSummary()
    results: list[LabelingOutcome] = []
    start_time = time.time()
    logger.info("Labeling issues", issue_count=len(issues), allowed_labels=allowed_labels.describe())

    for position, issue in enumerate(issues):
        if position and request_delay > 0:
            await asyncio.sleep(request_delay)
        outcome = await label_issue(issue, classifier, tracker, allowed_labels, prompt_template)
        results.append(outcome)
        summary.record(outcome)

    logger.info(
        "Labeled issues",
        duration=round(time.time() - start_time, 2),
        total=summary.total,
        success=summary.success,
        failed=summary.failed,
        labeled=summary.labeled,
        skipped=summary.skipped,
    )
    return LabelingReport(summary=summary, results=results)

"""Pydantic models for issues, classification results and session state."""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

import structlog
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from github_triage_manager.triage.labels import extract_label_name, normalize_labels

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp (or date) into an aware datetime, or None if it cannot be parsed."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Unparseable timestamp, treating it as missing", value=value)
            return None
    else:
        logger.warning("Unsupported timestamp type, treating it as missing", value_type=type(value).__name__)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class TriageIssue(BaseModel):
    """An open issue as seen by the triage workflows.

    Label names are normalized to lowercase here, once, so that all
    downstream comparisons can assume the canonical form.
    """

    model_config = ConfigDict(frozen=True)

    number: int = Field(gt=0)
    title: str = ""
    body: str = ""
    labels: frozenset[str] = frozenset()
    updated_at: datetime | None = None
    html_url: str | None = None

    @field_validator("title", "body", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("labels", mode="before")
    @classmethod
    def _normalize_labels(cls, value: Any) -> frozenset[str]:
        if isinstance(value, str):
            value = [value]
        return normalize_labels(value)

    @field_validator("updated_at", mode="before")
    @classmethod
    def _parse_updated_at(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @classmethod
    def from_github_issue(cls, issue: Any) -> "TriageIssue":
        """Build a triage issue from a githubkit issue model (or any object with the same attributes)."""
        return cls(
            number=issue.number,
            title=issue.title,
            body=getattr(issue, "body", None) or "",
            labels=[extract_label_name(label) for label in getattr(issue, "labels", None) or []],
            updated_at=getattr(issue, "updated_at", None),
            html_url=getattr(issue, "html_url", None),
        )

    def has_label(self, label: str) -> bool:
        """Case-insensitive label membership."""
        return label.strip().lower() in self.labels


def coerce_label_value(value: Any) -> str | None:
    """Coerce a model-provided label value to a non-empty string or None.

    Strings are stripped; empty or whitespace-only strings, None and False
    become None. Numbers and other JSON values are converted to their JSON
    text form (``123`` becomes ``"123"``). Only None, False and blank strings
    mean absent: other falsy values are kept, so ``0`` becomes ``"0"`` and
    ``{}`` becomes ``"{}"``.
    """
    if value is None or value is False:
        return None
    if isinstance(value, str):
        text = value
    else:
        try:
            text = json.dumps(value, default=str)
        except (TypeError, ValueError):
            text = str(value)
    text = text.strip()
    return text or None


StringOrAbsent = Annotated[str | None, BeforeValidator(coerce_label_value)]
"""A label value that is either a non-empty string or absent."""


class ClassificationResult(BaseModel):
    """Urgency and importance suggested by the text-generation model."""

    model_config = ConfigDict(extra="ignore")

    urgency: StringOrAbsent = None
    importance: StringOrAbsent = None

    def suggested_labels(self) -> list[str]:
        """The present values, urgency first."""
        return [value for value in (self.urgency, self.importance) if value is not None]


class SessionMode(str, Enum):
    """The two states of the work/break session cycle."""

    WORK = "work"
    BREAK = "break"

    @property
    def opposite(self) -> "SessionMode":
        """The mode a toggle moves to."""
        return SessionMode.BREAK if self is SessionMode.WORK else SessionMode.WORK


class SessionState(BaseModel):
    """The single persisted record of the session cycle."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    mode: SessionMode = SessionMode.BREAK
    last_break_index: int = Field(default=-1, ge=-1, alias="lastBreakIndex")

    def to_json(self) -> str:
        """Serialize to the on-disk representation."""
        return self.model_dump_json(by_alias=True, indent=2)

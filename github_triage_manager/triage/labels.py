"""Label normalization and the set of labels the triage workflows may apply."""

from dataclasses import dataclass, field
from typing import Any, Iterable

import structlog

from github_triage_manager.utils.constants import FALLBACK_ALLOWED_LABELS

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def extract_label_name(label: Any) -> str | None:
    """Return the name of a label given as a string, a mapping, or an object with a ``name``."""
    if isinstance(label, str):
        return label
    if isinstance(label, dict):
        name = label.get("name")
    else:
        name = getattr(label, "name", None)
    return name if isinstance(name, str) else None


def normalize_label(label: str) -> str:
    """Canonical form of a label name used for every comparison."""
    return label.strip().lower()


def normalize_labels(labels: Iterable[Any] | None) -> frozenset[str]:
    """Normalize a collection of labels, dropping entries without a usable name."""
    normalized: set[str] = set()
    for label in labels or ():
        name = extract_label_name(label)
        if name is None:
            logger.debug("Dropping label without a string name", label=repr(label))
            continue
        name = normalize_label(name)
        if name:
            normalized.add(name)
    return frozenset(normalized)


@dataclass(frozen=True)
class AllowedLabelSet:
    """Lowercase label names the system is permitted to apply.

    ``allow_all`` is the legacy behaviour where an empty configuration lets
    every label suggested by the model through.
    """

    labels: frozenset[str] = field(default_factory=frozenset)
    allow_all: bool = False

    def permits(self, label: str) -> bool:
        """Return whether a label may be applied."""
        return self.allow_all or normalize_label(label) in self.labels

    def filter(self, candidates: Iterable[str | None]) -> list[str]:
        """Keep the permitted candidates, normalized, deduplicated and in their original order."""
        allowed: list[str] = []
        for candidate in candidates:
            if not candidate:
                continue
            label = normalize_label(candidate)
            if label and label not in allowed and self.permits(label):
                allowed.append(label)
        return allowed

    def describe(self) -> str:
        """Human readable summary for log and console output."""
        if self.allow_all:
            return "all labels (legacy mode)"
        return ", ".join(sorted(self.labels)) or "none"


def build_allowed_label_set(configured_labels: Any, empty_config_means_allow_all: bool = False) -> AllowedLabelSet:
    """Compute the allowed label set once from configuration.

    - Legacy flag set: everything the model suggests is allowed, whatever the list holds.
    - Missing, malformed or empty list without the flag: the fallback set (urgent, important).
    - Otherwise: the configured string entries, lowercased. Non-string entries are dropped.
    """
    if empty_config_means_allow_all:
        logger.warning("Legacy label mode enabled, all labels suggested by the model are allowed")
        return AllowedLabelSet(allow_all=True)

    if not isinstance(configured_labels, (list, tuple, set, frozenset)):
        if configured_labels is not None:
            logger.warning("Allowed labels are not a list, using fallback labels", configured_labels=repr(configured_labels))
        else:
            logger.warning("Allowed labels are not configured, using fallback labels")
        return AllowedLabelSet(labels=FALLBACK_ALLOWED_LABELS)

    labels = frozenset(normalize_label(label) for label in configured_labels if isinstance(label, str) and label.strip())
    dropped = len(configured_labels) - len(labels)
    if dropped:
        logger.debug("Dropped invalid or duplicate allowed label entries", dropped=dropped)
    if not labels:
        logger.warning("Allowed labels list is empty, using fallback labels")
        return AllowedLabelSet(labels=FALLBACK_ALLOWED_LABELS)
    return AllowedLabelSet(labels=labels)

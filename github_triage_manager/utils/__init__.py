"""Utility modules for shared functionality."""

from .constants import (
    DEFAULT_BREAK_SUGGESTIONS,
    FALLBACK_ALLOWED_LABELS,
    IMPORTANT_LABEL,
    PRIORITY_LABEL_CASCADE,
    URGENT_LABEL,
)
from .retry import RetryPolicy, retry_transient_errors, retry_with_backoff

__all__ = [
    "DEFAULT_BREAK_SUGGESTIONS",
    "FALLBACK_ALLOWED_LABELS",
    "IMPORTANT_LABEL",
    "PRIORITY_LABEL_CASCADE",
    "URGENT_LABEL",
    "RetryPolicy",
    "retry_transient_errors",
    "retry_with_backoff",
]

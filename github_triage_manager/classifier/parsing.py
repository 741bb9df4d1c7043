"""Parses classification answers produced by the text-generation model."""

import json
from typing import Any

import structlog
from pydantic import ValidationError

from github_triage_manager.exceptions import ModelResponseParseError
from github_triage_manager.triage.models import ClassificationResult
from github_triage_manager.utils.constants import FENCED_CODE_BLOCK_PATTERN

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def _load_json_object(text: str) -> dict[str, Any] | None:
    try:
        data = json.loads(text)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def parse_model_response(raw_content: str) -> dict[str, Any]:
    """Extract the structured answer from the model's text.

    Direct JSON parsing is tried first, then the content of the first fenced
    markdown code block.

    Raises:
        ModelResponseParseError: If neither yields a JSON object. The raw content is attached.
    """
    data = _load_json_object(raw_content.strip())
    if data is not None:
        return data

    match = FENCED_CODE_BLOCK_PATTERN.search(raw_content)
    if match:
        data = _load_json_object(match.group(1).strip())
        if data is not None:
            return data

    logger.error("Failed to parse model response", raw_response=raw_content)
    raise ModelResponseParseError("Failed to parse model response", raw_response=raw_content)


def parse_classification(raw_content: str) -> ClassificationResult:
    """Parse and coerce a model answer into a classification result."""
    data = parse_model_response(raw_content)
    try:
        return ClassificationResult.model_validate(data)
    except ValidationError as exc:
        raise ModelResponseParseError(f"Model response has an unexpected shape: {exc}", raw_response=raw_content) from exc

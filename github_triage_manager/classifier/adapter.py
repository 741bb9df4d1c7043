"""Label classifier adapter: one model request per issue, parsed into urgency and importance."""

from typing import Protocol

import structlog

from github_triage_manager.classifier.parsing import parse_classification
from github_triage_manager.triage.models import ClassificationResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class CompletionClient(Protocol):
    """Anything that turns a prompt into a text answer."""

    async def complete(self, prompt: str) -> str: ...


class LabelClassifier:
    """Classifies issue text into urgency and importance labels."""

    def __init__(self, client: CompletionClient) -> None:
        """Initialize the classifier with a completion client."""
        self.client = client

    async def classify(self, prompt: str) -> ClassificationResult:
        """Send a single request and parse the answer.

        Rate limit and network errors from the client propagate unchanged.
        Unparseable answers raise ModelResponseParseError and are not retried.
        """
        raw_content = await self.client.complete(prompt)
        result = parse_classification(raw_content)
        logger.info("Model inference complete", urgency=result.urgency, importance=result.importance)
        return result

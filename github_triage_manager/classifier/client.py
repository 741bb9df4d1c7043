"""HTTP client for the GitHub Models chat completions endpoint."""

from types import TracebackType
from typing import Any, Self

import httpx
import structlog

from github_triage_manager.exceptions import ModelRequestError, RateLimitError, TransientNetworkError
from github_triage_manager.utils.constants import (
    DEFAULT_MODEL_API_ENDPOINT,
    DEFAULT_MODEL_MAX_TOKENS,
    DEFAULT_MODEL_NAME,
    DEFAULT_MODEL_TEMPERATURE,
    DEFAULT_RATE_LIMIT_RETRY_AFTER_SECONDS,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class GitHubModelsClient:
    """Sends a single prompt to a chat completions endpoint and returns the text answer.

    Example:
        >>> async with GitHubModelsClient(token="ghp_xxx") as client:
        ...     answer = await client.complete("Classify this issue ...")
    """

    def __init__(
        self,
        token: str,
        api_endpoint: str = DEFAULT_MODEL_API_ENDPOINT,
        model: str = DEFAULT_MODEL_NAME,
        temperature: float = DEFAULT_MODEL_TEMPERATURE,
        max_tokens: int = DEFAULT_MODEL_MAX_TOKENS,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client. ``http_client`` lets callers supply their own transport."""
        if not token:
            raise RuntimeError("The model endpoint requires a token.")
        self.api_endpoint = api_endpoint
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http_client.aclose()

    def _build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "messages": [{"role": "user", "content": prompt}],
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def complete(self, prompt: str) -> str:
        """Send ``prompt`` and return the stripped text of the first choice.

        Raises:
            RateLimitError: On HTTP 429, carrying the advertised retry-after interval.
            TransientNetworkError: On timeouts and transport failures.
            ModelRequestError: On any other HTTP failure or a response without content.
        """
        try:
            response = await self._http_client.post(self.api_endpoint, json=self._build_payload(prompt), headers=self._headers)
        except httpx.TimeoutException as exc:
            raise TransientNetworkError(f"Model request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise TransientNetworkError(f"Model request failed: {exc}") from exc

        if response.status_code == 429:
            try:
                retry_after = float(response.headers.get("retry-after", DEFAULT_RATE_LIMIT_RETRY_AFTER_SECONDS))
            except ValueError:
                retry_after = DEFAULT_RATE_LIMIT_RETRY_AFTER_SECONDS
            logger.warning("Model rate limit exceeded", retry_after=retry_after)
            raise RateLimitError(f"Rate limit exceeded. Retry after {retry_after} seconds.", retry_after=retry_after)

        if response.is_error:
            logger.error("Model request failed", status_code=response.status_code, response=response.text)
            raise ModelRequestError(f"GitHub Models API request failed with status {response.status_code}", status_code=response.status_code)

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ModelRequestError("Invalid response format from GitHub Models API") from exc
        if not isinstance(content, str) or not content.strip():
            raise ModelRequestError("Invalid response format from GitHub Models API")
        return content.strip()

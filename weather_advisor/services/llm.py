"""Language-model client for the Gemini text-generation API."""

from typing import Any, Protocol

import httpx

from weather_advisor.core.config import settings
from weather_advisor.core.errors import (
    ConfigurationError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from weather_advisor.core.logging import get_logger

logger = get_logger(__name__)


class TextModel(Protocol):
    """Anything that turns a single prompt into generated text."""

    async def complete(self, prompt: str) -> str:
        ...


def extract_candidate_text(data: dict[str, Any]) -> str:
    """Pull the generated text out of a generateContent response.

    Args:
        data: Decoded response body

    Returns:
        Text of the first candidate, or an empty string if there is none
    """
    candidates = data.get("candidates") or []
    if not candidates:
        return ""

    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict)).strip()


class GeminiClient:
    """Minimal async client for Gemini generateContent."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        """Initialize the client with its own connection pool."""
        self.client = client or httpx.AsyncClient(timeout=settings.request_timeout)

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    def _endpoint(self) -> str:
        return f"{settings.gemini_api_url}/models/{settings.gemini_model}:generateContent"

    async def complete(self, prompt: str) -> str:
        """Send a prompt and return the generated text.

        Args:
            prompt: Full instruction text

        Returns:
            Generated text, possibly empty

        Raises:
            ConfigurationError: If GEMINI_API_KEY is not set
            UpstreamTimeoutError: If the request times out
            UpstreamUnavailableError: If the API fails or returns malformed data
        """
        if not settings.gemini_api_key:
            raise ConfigurationError("Missing GEMINI_API_KEY")

        try:
            response = await self.client.post(
                self._endpoint(),
                params={"key": settings.gemini_api_key},
                json={"contents": [{"parts": [{"text": prompt}]}]},
                timeout=settings.request_timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("llm_timeout", model=settings.gemini_model, error=str(e))
            raise UpstreamTimeoutError("Language model request timed out") from e
        except httpx.HTTPError as e:
            logger.error("llm_request_failed", model=settings.gemini_model, error=str(e))
            raise UpstreamUnavailableError(f"Language model request failed: {e}") from e

        if response.status_code != 200:
            logger.error("llm_bad_status", model=settings.gemini_model, status_code=response.status_code)
            raise UpstreamUnavailableError(f"Language model returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            logger.error("llm_malformed_response", error=str(e))
            raise UpstreamUnavailableError("Language model returned malformed JSON") from e

        if not isinstance(data, dict):
            raise UpstreamUnavailableError("Language model returned an unexpected payload")

        return extract_candidate_text(data)


# Global language model client
gemini_client = GeminiClient()

"""
OpenRouter Chat Completion Client

A thin async wrapper around an OpenAI-compatible chat-completion endpoint
(OpenRouter by default):

    POST {OPENROUTER_API_URL}
    Authorization: Bearer <api key>
    {"model": "...", "messages": [{"role": "system", ...}, {"role": "user", ...}], ...}

The assistant's reply is read from ``choices[0].message.content``.

The client is stateless: every call opens its own httpx.AsyncClient, so it
is safe to construct per request or per Celery job. No retries and no
timeout beyond httpx's defaults; callers decide what a failure means.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from phrasebook.core.config import settings

logger = logging.getLogger(__name__)


class AIProviderError(Exception):
    """The provider could not be reached or returned an unusable response."""
    pass


def extract_message_content(data: Any) -> Optional[str]:
    """
    Pull ``choices[0].message.content`` out of a chat-completion envelope.

    Returns None for any shape that doesn't carry a string there.
    """
    if not isinstance(data, dict):
        return None

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None

    first = choices[0]
    if not isinstance(first, dict):
        return None

    message = first.get("message")
    if not isinstance(message, dict):
        return None

    content = message.get("content")
    if not isinstance(content, str):
        return None

    return content


class OpenRouterClient:
    """
    Async client for chat completions.

    Usage:
    ------
    client = OpenRouterClient(api_key=app_settings.api_key, model="x-ai/grok-4.1-fast:free")
    reply = await client.complete(
        system_prompt="Respond with only the category name.",
        user_message="Stay hungry, stay foolish.",
        max_tokens=20,
    )
    """

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Bearer token for the provider
            model: Model identifier (defaults to settings.DEFAULT_AI_MODEL)
            api_url: Chat-completion endpoint (defaults to settings.OPENROUTER_API_URL)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not api_key:
            raise ValueError("An API key is required for the AI provider")

        self.api_key = api_key
        self.model = model or settings.DEFAULT_AI_MODEL
        self.api_url = api_url or settings.OPENROUTER_API_URL
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def build_payload(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Build the JSON request body."""
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ]
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if response_format is not None:
            payload["response_format"] = response_format
        return payload

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Send one chat completion request and return the assistant's content.

        Args:
            system_prompt: Fixed instruction for the model
            user_message: The user turn
            max_tokens: Completion length cap (categorization uses a small one)
            response_format: e.g. {"type": "json_object"} for structured output

        Returns:
            The assistant message content (never empty)

        Raises:
            AIProviderError: transport failure, non-2xx status, non-JSON
                envelope, or missing/empty content
        """
        payload = self.build_payload(system_prompt, user_message, max_tokens, response_format)

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    headers=self._headers(),
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.warning(f"AI provider request failed for model {self.model}: {e}")
            raise AIProviderError(f"AI provider request failed: {e}") from e

        if response.is_error:
            logger.warning(
                f"AI provider returned HTTP {response.status_code} for model {self.model}"
            )
            raise AIProviderError(f"AI provider returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise AIProviderError("AI provider returned a non-JSON response") from e

        content = extract_message_content(data)
        if content is None or not content.strip():
            raise AIProviderError("AI provider returned no content")

        return content

"""
AI phrase suggestions.

Asks the provider for a fresh inspirational phrase as a JSON object
``{"text": ..., "source": ...}``. Nothing here touches the database; the
caller decides whether to submit the suggestion as a phrase.
"""

import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from phrasebook.schemas.phrase import PhraseSuggestion
from phrasebook.services.ai.client import AIProviderError, OpenRouterClient

logger = logging.getLogger(__name__)


SUGGESTION_PROMPT = (
    "You are a wise philosopher and productivity expert. Generate a unique, "
    "meaningful phrase, quote, or thought that can be used for daily inspiration "
    "or productivity. It should be profound yet practical. Return ONLY the JSON "
    "object with keys 'text' and 'source'. Do not wrap in markdown code blocks."
)
SUGGESTION_USER_MESSAGE = "Generate a phrase."

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


class SuggestionParseError(ValueError):
    """The model's reply is not a usable {text, source} object."""
    pass


def parse_json_reply(content: str) -> Any:
    """
    Parse a JSON reply, tolerating a ```json fenced block around it.

    Raises:
        SuggestionParseError: if neither the raw text nor a fenced block parses
    """
    try:
        return json.loads(content)
    except ValueError:
        pass

    match = _FENCED_BLOCK.search(content)
    if match:
        try:
            return json.loads(match.group(1))
        except ValueError:
            pass

    raise SuggestionParseError("Reply is not valid JSON")


def parse_suggestion(content: str) -> PhraseSuggestion:
    """
    Turn the model's reply into a PhraseSuggestion.

    Raises:
        SuggestionParseError: malformed JSON, not an object, or no usable text
    """
    data = parse_json_reply(content)
    if not isinstance(data, dict):
        raise SuggestionParseError("Reply is not a JSON object")

    try:
        return PhraseSuggestion.model_validate(data)
    except ValidationError as e:
        raise SuggestionParseError(f"Reply has the wrong shape: {e.error_count()} error(s)") from e


class PhraseSuggester:
    """Generates one phrase suggestion per call."""

    def __init__(self, client: OpenRouterClient):
        self.client = client

    async def suggest(self) -> PhraseSuggestion:
        """
        Raises:
            AIProviderError: transport/status/empty-content failures
            SuggestionParseError: unusable reply
        """
        content = await self.client.complete(
            system_prompt=SUGGESTION_PROMPT,
            user_message=SUGGESTION_USER_MESSAGE,
            response_format={"type": "json_object"},
        )
        return parse_suggestion(content)


__all__ = [
    "AIProviderError",
    "PhraseSuggester",
    "SuggestionParseError",
    "parse_json_reply",
    "parse_suggestion",
]

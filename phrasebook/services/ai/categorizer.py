"""
Phrase categorization prompt and response parsing.
"""

import logging
from typing import Optional

from phrasebook.core.config import settings
from phrasebook.models.phrase import PhraseCategory
from phrasebook.services.ai.client import OpenRouterClient

logger = logging.getLogger(__name__)


CATEGORIZATION_PROMPT = (
    "Categorize this phrase into one of these categories: "
    f"{', '.join(PhraseCategory.labels())}. "
    "Respond with only the category name."
)


def parse_category(content: Optional[str]) -> Optional[PhraseCategory]:
    """
    Map the model's reply onto PhraseCategory.

    Only a case-exact label (surrounding whitespace ignored) counts;
    "technical", "Technical." or a sentence containing a label do not.
    """
    if content is None:
        return None

    label = content.strip()
    try:
        return PhraseCategory(label)
    except ValueError:
        return None


class PhraseCategorizer:
    """Asks the AI provider for exactly one category label."""

    def __init__(self, client: OpenRouterClient, max_tokens: Optional[int] = None):
        self.client = client
        self.max_tokens = max_tokens or settings.CATEGORIZATION_MAX_TOKENS

    async def categorize(self, text: str) -> Optional[PhraseCategory]:
        """
        Classify ``text``.

        Returns:
            The category, or None if the reply isn't a valid label

        Raises:
            AIProviderError: propagated from the client
        """
        reply = await self.client.complete(
            system_prompt=CATEGORIZATION_PROMPT,
            user_message=text,
            max_tokens=self.max_tokens,
        )
        category = parse_category(reply)
        if category is None:
            logger.info(f"Model returned an unknown category label: {reply.strip()[:50]!r}")
        return category

"""
AI provider integration.

- client: OpenAI-compatible chat-completion client (OpenRouter)
- categorizer: phrase -> PhraseCategory
- suggestions: generate a new {text, source} phrase
"""

from phrasebook.services.ai.categorizer import (
    CATEGORIZATION_PROMPT,
    PhraseCategorizer,
    parse_category,
)
from phrasebook.services.ai.client import (
    AIProviderError,
    OpenRouterClient,
    extract_message_content,
)
from phrasebook.services.ai.suggestions import (
    PhraseSuggester,
    SuggestionParseError,
    parse_suggestion,
)

__all__ = [
    "OpenRouterClient",
    "AIProviderError",
    "extract_message_content",
    "PhraseCategorizer",
    "CATEGORIZATION_PROMPT",
    "parse_category",
    "PhraseSuggester",
    "SuggestionParseError",
    "parse_suggestion",
]

"""Business logic services."""

from phrasebook.services.phrase_queries import PhraseQueryService, create_phrase_query_service
from phrasebook.services.phrase_service import PhraseService, create_phrase_service
from phrasebook.services.settings_service import SettingsService, create_settings_service

__all__ = [
    "PhraseService",
    "create_phrase_service",
    "PhraseQueryService",
    "create_phrase_query_service",
    "SettingsService",
    "create_settings_service",
]

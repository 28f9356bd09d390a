"""
Database Models

Import models from this module to ensure they're registered with SQLAlchemy:

    from phrasebook.models import Phrase, AppSettings

This ensures that:
1. Alembic can detect all models for migrations
2. Base.metadata.create_all() sees every table
"""

from phrasebook.models.phrase import (
    DEFAULT_CATEGORY,
    PROCESSING_CATEGORY,
    Phrase,
    PhraseCategory,
    PhraseState,
    Processing,
    Settled,
)
from phrasebook.models.settings import GLOBAL_SETTINGS_KEY, AppSettings

__all__ = [
    # Phrase
    "Phrase",
    "PhraseCategory",
    "PhraseState",
    "Processing",
    "Settled",
    "PROCESSING_CATEGORY",
    "DEFAULT_CATEGORY",
    # Settings
    "AppSettings",
    "GLOBAL_SETTINGS_KEY",
]

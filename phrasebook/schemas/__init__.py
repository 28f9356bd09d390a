"""
Pydantic schemas for request/response validation.

Import all schemas here for easy access.
"""

from phrasebook.schemas.phrase import (
    PhraseCreate,
    PhraseListResponse,
    PhraseResponse,
    PhraseSuggestion,
    PhraseUpdate,
    RandomPhraseResponse,
)
from phrasebook.schemas.settings import (
    AvailableModelsResponse,
    ModelOption,
    SettingsResponse,
    SettingsUpdate,
)
from phrasebook.schemas.stats import (
    ActivityHeatmapResponse,
    CategoryHistogramResponse,
    DashboardSummaryResponse,
    WeeklyCountResponse,
    WeeklyProgressResponse,
)

__all__ = [
    # Phrases
    "PhraseCreate",
    "PhraseUpdate",
    "PhraseResponse",
    "PhraseListResponse",
    "RandomPhraseResponse",
    "PhraseSuggestion",
    # Settings
    "SettingsUpdate",
    "SettingsResponse",
    "ModelOption",
    "AvailableModelsResponse",
    # Stats
    "CategoryHistogramResponse",
    "WeeklyCountResponse",
    "DashboardSummaryResponse",
    "WeeklyProgressResponse",
    "ActivityHeatmapResponse",
]

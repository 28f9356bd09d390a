"""
Application Settings Model

A single global settings row holding the AI provider credentials and the
preferred model. There is no per-user scoping.

The unique ``key`` column (always "global") turns "at most one settings
record" into a database guarantee: a second insert fails instead of
silently creating a competing row.
"""

from typing import Optional

from sqlalchemy.orm import Mapped, mapped_column

from phrasebook.db.base import BaseModel, String50, String255

GLOBAL_SETTINGS_KEY = "global"


class AppSettings(BaseModel):
    """Single-row settings table (see SettingsService for upsert semantics)."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(
        String50,
        unique=True,
        nullable=False,
        default=GLOBAL_SETTINGS_KEY,
        comment="Singleton key, always 'global'"
    )

    api_key: Mapped[Optional[str]] = mapped_column(
        String255,
        nullable=True,
        comment="AI provider API key"
    )

    preferred_model: Mapped[Optional[str]] = mapped_column(
        String255,
        nullable=True,
        comment="AI model identifier; falls back to DEFAULT_AI_MODEL"
    )

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

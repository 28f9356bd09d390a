"""
Phrase Model

A phrase is a short saved text snippet with an optional source attribution
and an AI-assigned category.

Categorization Lifecycle:
-------------------------
Every phrase is in exactly one of two states:

    Processing              → just submitted, waiting for the categorization job
                              (is_processing = True, category = "Processing...")
    Settled(category)       → category is one of PhraseCategory
                              (is_processing = False)

    submit ──► Processing ──(categorization job / manual category edit)──► Settled

The two columns are an encoding of that state. ``phrase.state`` decodes it
(API responses serialize its ``label``), and writes go through
``Phrase.create_processing()`` / ``phrase.settle()``. The
``ck_phrases_processing_state`` constraint rejects any other combination at
the database level.

Database Tables:
----------------
- phrases: one row per phrase

Indexes:
--------
- ix_phrases_category: equality filter for the category view
- ix_phrases_created_at: newest-first listing and the 7-day window
- ix_phrases_text_search_gin (PostgreSQL, created by migration): full-text
  search over to_tsvector('english', text)
"""

import enum
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from sqlalchemy import Boolean, CheckConstraint, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from phrasebook.db.base import BaseModel, String50, String500


# ================================
# Enums and State
# ================================

class PhraseCategory(str, enum.Enum):
    """The fixed set of categories a settled phrase can carry."""

    PROFESSIONAL = "Professional"
    PHILOSOPHICAL = "Philosophical"
    HUMOROUS = "Humorous"
    MOTIVATIONAL = "Motivational"
    TECHNICAL = "Technical"
    CREATIVE = "Creative"
    LIFE_WISDOM = "Life Wisdom"

    def __str__(self) -> str:
        """Return the string value of the enum."""
        return self.value

    @classmethod
    def labels(cls) -> list[str]:
        return [member.value for member in cls]


# Stored in `category` while the categorization job is pending
PROCESSING_CATEGORY = "Processing..."

# Used whenever the AI provider can't (or may not) be asked
DEFAULT_CATEGORY = PhraseCategory.LIFE_WISDOM


@dataclass(frozen=True)
class Processing:
    """Categorization has not finished yet."""

    label: ClassVar[str] = "processing"


@dataclass(frozen=True)
class Settled:
    """Categorization finished with ``category``."""

    label: ClassVar[str] = "settled"
    category: PhraseCategory


PhraseState = Union[Processing, Settled]


def _processing_state_check() -> str:
    labels = ", ".join(f"'{label}'" for label in PhraseCategory.labels())
    return (
        f"(is_processing AND category = '{PROCESSING_CATEGORY}') "
        f"OR (NOT is_processing AND category IN ({labels}))"
    )


# ================================
# Phrase Model
# ================================

class Phrase(BaseModel):
    """
    A saved phrase.

    Fields:
    -------
    - text: The phrase itself (non-empty)
    - source: Optional attribution ("Seneca", "my manager", ...)
    - category: PhraseCategory value, or PROCESSING_CATEGORY while pending
    - is_processing: True until the phrase is settled
    - created_at / updated_at: from BaseModel
    """

    __tablename__ = "phrases"

    text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Phrase text"
    )

    source: Mapped[Optional[str]] = mapped_column(
        String500,
        nullable=True,
        comment="Optional attribution"
    )

    category: Mapped[str] = mapped_column(
        String50,
        nullable=False,
        index=True,
        comment="PhraseCategory value or the processing sentinel"
    )

    is_processing: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="True while the categorization job is pending"
    )

    __table_args__ = (
        CheckConstraint(_processing_state_check(), name="processing_state"),
        Index("ix_phrases_created_at", "created_at"),
    )

    # ---------------------------------
    # State helpers
    # ---------------------------------

    @classmethod
    def create_processing(cls, text: str, source: Optional[str] = None) -> "Phrase":
        """Build a new phrase in the Processing state."""
        return cls(
            text=text,
            source=source,
            category=PROCESSING_CATEGORY,
            is_processing=True,
        )

    @property
    def state(self) -> PhraseState:
        if self.is_processing:
            return Processing()
        return Settled(PhraseCategory(self.category))

    def settle(self, category: PhraseCategory) -> None:
        """Move the phrase to Settled(category)."""
        self.category = PhraseCategory(category).value
        self.is_processing = False

    def __repr__(self) -> str:
        return f"Phrase(id={self.id}, category={self.category!r}, is_processing={self.is_processing})"

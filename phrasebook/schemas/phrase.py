"""
Pydantic schemas for phrase API endpoints.

These schemas define the request/response structures for phrase operations.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from phrasebook.models.phrase import PhraseCategory

DEFAULT_SUGGESTION_SOURCE = "AI Generated"


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# ========================================
# Request Schemas
# ========================================


class PhraseCreate(BaseModel):
    """Request schema for submitting a new phrase."""

    text: str = Field(
        ...,
        description="The phrase text",
        min_length=1,
        max_length=2000,
        examples=["The obstacle is the way."]
    )

    source: Optional[str] = Field(
        None,
        description="Optional attribution",
        max_length=500,
        examples=["Marcus Aurelius"]
    )

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Trim the text and reject whitespace-only input."""
        v = v.strip()
        if not v:
            raise ValueError("Phrase text cannot be empty")
        return v

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: Optional[str]) -> Optional[str]:
        return _clean_optional(v)


class PhraseUpdate(BaseModel):
    """
    Request schema for editing a phrase.

    ``source`` is replaced by whatever is sent (omitting it clears it).
    ``category`` is only changed when supplied.
    """

    text: str = Field(..., min_length=1, max_length=2000)
    category: Optional[PhraseCategory] = Field(
        None,
        description="New category (one of the fixed labels)"
    )
    source: Optional[str] = Field(None, max_length=500)

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Phrase text cannot be empty")
        return v

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: Optional[str]) -> Optional[str]:
        return _clean_optional(v)


# ========================================
# Response Schemas
# ========================================


class PhraseResponse(BaseModel):
    """A phrase as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    text: str
    source: Optional[str] = None
    category: str = Field(..., description="Category label, or 'Processing...' while pending")
    is_processing: bool
    state: Literal["processing", "settled"] = Field(..., description="Decoded from Phrase.state")
    created_at: datetime
    updated_at: datetime

    @field_validator("state", mode="before")
    @classmethod
    def state_label(cls, v: Any) -> Any:
        # Phrase.state is a Processing / Settled instance
        return getattr(v, "label", v)


class PhraseListResponse(BaseModel):
    """Response schema for listing/searching phrases."""

    phrases: List[PhraseResponse]
    total: int


class RandomPhraseResponse(BaseModel):
    """A random settled phrase, or null when there is none."""

    phrase: Optional[PhraseResponse] = None


class PhraseSuggestion(BaseModel):
    """An AI-generated phrase suggestion (not persisted)."""

    text: str = Field(..., min_length=1)
    source: str = DEFAULT_SUGGESTION_SOURCE

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Suggestion text cannot be empty")
        return v

    @field_validator("source", mode="before")
    @classmethod
    def default_source(cls, v: Any) -> Any:
        """Missing or blank sources become "AI Generated"."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_SUGGESTION_SOURCE
        if isinstance(v, str):
            return v.strip()
        return v

"""
Pydantic schemas for the settings endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class SettingsUpdate(BaseModel):
    """
    Request schema for updating settings.

    Only fields present in the request body are changed. Sending an empty
    string (or null) clears a field.
    """

    api_key: Optional[str] = Field(
        None,
        description="AI provider API key",
        max_length=255,
    )

    preferred_model: Optional[str] = Field(
        None,
        description="Model identifier, e.g. x-ai/grok-4.1-fast:free",
        max_length=255,
        examples=["x-ai/grok-4.1-fast:free"]
    )

    @field_validator("api_key", "preferred_model")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class SettingsResponse(BaseModel):
    """Settings as returned by the API. The raw API key is never echoed."""

    api_key_configured: bool
    api_key_hint: Optional[str] = Field(
        None,
        description="Masked key, last four characters only"
    )
    preferred_model: Optional[str] = None
    effective_model: str = Field(..., description="Model used for AI calls")
    updated_at: Optional[datetime] = None


class ModelOption(BaseModel):
    id: str
    name: str


class AvailableModelsResponse(BaseModel):
    models: List[ModelOption]
    default_model: str

"""
Settings API endpoints.

The AI provider key and preferred model live in a single settings record.
Read-back never returns the raw key, only whether one is set and its last
four characters.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from phrasebook.core.config import settings as app_config
from phrasebook.db.deps import DBSession
from phrasebook.models.settings import AppSettings
from phrasebook.schemas.settings import (
    AvailableModelsResponse,
    ModelOption,
    SettingsResponse,
    SettingsUpdate,
)
from phrasebook.services.settings_service import SettingsService, mask_api_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])


def get_settings_service(db: DBSession) -> SettingsService:
    return SettingsService(db)


def _to_response(app_settings: Optional[AppSettings]) -> SettingsResponse:
    if app_settings is None:
        return SettingsResponse(
            api_key_configured=False,
            effective_model=SettingsService.resolve_model(None),
        )

    return SettingsResponse(
        api_key_configured=app_settings.has_api_key,
        api_key_hint=mask_api_key(app_settings.api_key),
        preferred_model=app_settings.preferred_model,
        effective_model=SettingsService.resolve_model(app_settings),
        updated_at=app_settings.updated_at,
    )


@router.get("", response_model=SettingsResponse)
async def get_settings(
    service: SettingsService = Depends(get_settings_service),
) -> SettingsResponse:
    """Current settings (masked)."""
    return _to_response(await service.get())


@router.put("", response_model=SettingsResponse)
async def update_settings(
    payload: SettingsUpdate,
    service: SettingsService = Depends(get_settings_service),
) -> SettingsResponse:
    """
    Update settings.

    Only fields present in the body are changed; an empty string clears one.
    """
    changes = payload.model_dump(exclude_unset=True)
    try:
        app_settings = await service.update(changes)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    logger.info(f"Settings updated: {sorted(changes)}")
    return _to_response(app_settings)


@router.get("/models", response_model=AvailableModelsResponse)
async def available_models() -> AvailableModelsResponse:
    """Models offered in the settings dialog."""
    return AvailableModelsResponse(
        models=[ModelOption(id=model_id, name=name) for model_id, name in SettingsService.available_models()],
        default_model=app_config.DEFAULT_AI_MODEL,
    )

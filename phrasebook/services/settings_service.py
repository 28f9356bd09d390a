"""
Settings Service

Owns the single global settings record.

Upsert semantics:
-----------------
- update() with no existing row inserts one holding just the supplied fields
- update() with an existing row patches only the supplied fields
- a first save that loses the insert race to a concurrent caller (unique
  ``key``) is rolled back and applied as a patch to the winning row

"Supplied" means present in the ``changes`` mapping, so callers pass
``model_dump(exclude_unset=True)`` rather than every field with None.
"""

import logging
from typing import Dict, List, Mapping, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from phrasebook.core.config import settings
from phrasebook.models.settings import GLOBAL_SETTINGS_KEY, AppSettings

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("api_key", "preferred_model")


def mask_api_key(api_key: Optional[str]) -> Optional[str]:
    """Show only the last four characters of a key."""
    if not api_key:
        return None
    if len(api_key) <= 4:
        return "****"
    return f"****{api_key[-4:]}"


class SettingsService:
    """
    Service for reading and updating application settings.

    Usage:
    ------
    service = SettingsService(db)
    await service.update({"api_key": "sk-or-..."})
    await service.update({"preferred_model": "z-ai/glm-4.5-air:free"})  # api_key untouched
    model = service.resolve_model(await service.get())
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self) -> Optional[AppSettings]:
        """Return the settings record, or None if it was never saved."""
        result = await self.db.execute(
            select(AppSettings).where(AppSettings.key == GLOBAL_SETTINGS_KEY)
        )
        return result.scalar_one_or_none()

    async def update(self, changes: Mapping[str, Optional[str]]) -> AppSettings:
        """
        Upsert the settings record.

        Args:
            changes: Supplied fields only (api_key and/or preferred_model)

        Returns:
            The saved settings record

        Raises:
            ValueError: for field names that aren't settings
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown settings fields: {', '.join(sorted(unknown))}")

        app_settings = await self.get()

        if app_settings is None:
            app_settings = AppSettings(key=GLOBAL_SETTINGS_KEY, **dict(changes))
            self.db.add(app_settings)
            try:
                await self.db.commit()
            except IntegrityError:
                # Lost the race for the first save; uq_settings_key holds the winner
                await self.db.rollback()
                logger.info("Settings record created concurrently, applying changes as a patch")
                app_settings = await self.get()
                if app_settings is None:
                    raise
                return await self._patch(app_settings, changes)

            logger.info(f"Created settings record with fields: {sorted(changes)}")
            await self.db.refresh(app_settings)
            return app_settings

        return await self._patch(app_settings, changes)

    async def _patch(self, app_settings: AppSettings, changes: Mapping[str, Optional[str]]) -> AppSettings:
        for field, value in changes.items():
            setattr(app_settings, field, value)

        await self.db.commit()
        await self.db.refresh(app_settings)
        logger.info(f"Updated settings fields: {sorted(changes)}")
        return app_settings

    @staticmethod
    def resolve_model(app_settings: Optional[AppSettings]) -> str:
        """Preferred model if set, otherwise the configured default."""
        if app_settings is not None and app_settings.preferred_model:
            return app_settings.preferred_model
        return settings.DEFAULT_AI_MODEL

    @staticmethod
    def available_models() -> List[Tuple[str, str]]:
        """(id, display name) pairs offered in the settings dialog."""
        models: Dict[str, str] = settings.available_ai_models
        return list(models.items())


def create_settings_service(db: AsyncSession) -> SettingsService:
    """Factory function to create a settings service."""
    return SettingsService(db)

"""
Settings Service - per-user notification preferences.
"""

import logging

from roadblock.core.settings import settings
from roadblock.models.user_settings import SettingsUpdate, UserSettings
from roadblock.services.storage import IncidentRepository

logger = logging.getLogger(__name__)


def default_settings(user_id: str) -> UserSettings:
    return UserSettings(
        user_id=user_id,
        siren_enabled=True,
        vibration_enabled=True,
        popup_alerts_enabled=True,
        alert_distance_meters=settings.ALERT_DISTANCE_DEFAULT_METERS,
    )


class SettingsService:

    def __init__(self, repository: IncidentRepository):
        self.repository = repository

    async def get_or_create_settings(self, user_id: str) -> UserSettings:
        """Return the user's settings, persisting the defaults on first access."""
        existing = await self.repository.get_settings(user_id)
        if existing is not None:
            return existing

        defaults = default_settings(user_id)
        created = await self.repository.upsert_settings(
            user_id, defaults.model_dump(exclude={"user_id"})
        )
        logger.info(f"Default settings created for user={user_id}")
        return created

    async def update_settings(self, user_id: str, update: SettingsUpdate) -> UserSettings:
        """Merge the provided fields; anything unset keeps its current value."""
        current = await self.get_or_create_settings(user_id)
        fields = update.model_dump(exclude_unset=True, exclude_none=True)
        if not fields:
            return current
        return await self.repository.upsert_settings(user_id, fields)

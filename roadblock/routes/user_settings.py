"""
Settings endpoints - the caller's notification preferences.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from roadblock.core.settings import settings
from roadblock.models.user_settings import SettingsUpdate, UserSettings
from roadblock.routes.deps import get_settings_service
from roadblock.services.settings_service import SettingsService
from roadblock.utils.security import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.API_PREFIX, tags=["Settings"])


@router.get("/settings", response_model=UserSettings)
async def get_settings(
    user_id: str = Depends(get_current_user_id),
    service: SettingsService = Depends(get_settings_service),
):
    """Caller's settings; defaults are created and stored on first access."""
    try:
        return await service.get_or_create_settings(user_id)
    except Exception as e:
        logger.error(f"Failed to get settings for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve settings: {str(e)}"
        )


@router.put("/settings", response_model=UserSettings)
async def update_settings(
    update: SettingsUpdate,
    user_id: str = Depends(get_current_user_id),
    service: SettingsService = Depends(get_settings_service),
):
    """Partial update; omitted fields keep their previous values."""
    try:
        return await service.update_settings(user_id, update)
    except Exception as e:
        logger.error(f"Failed to update settings for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update settings: {str(e)}"
        )

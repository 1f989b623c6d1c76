"""
Proximity alert endpoint - the client posts every geolocation sample here.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from roadblock.core.settings import settings
from roadblock.models.proximity import Position, ProximityDecision
from roadblock.routes.deps import get_incident_service, get_settings_service
from roadblock.services.incident_service import IncidentService
from roadblock.services.proximity import NotifierRegistry, get_notifier_registry
from roadblock.services.settings_service import SettingsService
from roadblock.utils.security import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.API_PREFIX, tags=["Alerts"])


@router.post("/alerts/proximity", response_model=ProximityDecision, response_model_exclude_none=True)
async def check_proximity(
    position: Position,
    user_id: str = Depends(get_current_user_id),
    incidents: IncidentService = Depends(get_incident_service),
    preferences: SettingsService = Depends(get_settings_service),
    registry: NotifierRegistry = Depends(get_notifier_registry),
):
    """
    Evaluate the caller's live position against the active incidents.

    Returns ``alert`` with a payload, ``suppressed`` while the previous
    alert's cooldown is running, or ``clear`` when nothing is close enough.
    """
    try:
        user_settings = await preferences.get_or_create_settings(user_id)
        active = await incidents.list_active_incidents()
        notifier = registry.for_user(user_id)
        return notifier.evaluate(position.latitude, position.longitude, active, user_settings)
    except Exception as e:
        logger.error(f"Proximity check failed for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Proximity check failed: {str(e)}"
        )

"""
Incident endpoints - reporting, querying and verifying road incidents.
"""

from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from roadblock.core.errors import RoadblockError
from roadblock.core.settings import settings
from roadblock.models.incident import Incident, IncidentCreate
from roadblock.models.verification import VerificationResult, VerifyRequest
from roadblock.routes.deps import get_incident_service, get_verification_service
from roadblock.services.incident_service import IncidentService
from roadblock.services.verification_service import VerificationService
from roadblock.utils.security import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.API_PREFIX, tags=["Incidents"])


@router.get("/incidents", response_model=List[Incident])
async def list_active_incidents(service: IncidentService = Depends(get_incident_service)):
    """All currently active incidents."""
    try:
        return await service.list_active_incidents()
    except Exception as e:
        logger.error(f"Failed to list incidents: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve incidents: {str(e)}"
        )


@router.get("/incidents/nearby", response_model=List[Incident])
async def list_nearby_incidents(
    lat: Optional[str] = Query(None, description="Latitude in decimal degrees"),
    lon: Optional[str] = Query(None, description="Longitude in decimal degrees"),
    radius: Optional[str] = Query(None, description="Search radius in meters (default 5000)"),
    service: IncidentService = Depends(get_incident_service),
):
    """
    Active incidents within ``radius`` meters of (lat, lon), nearest first.
    """
    try:
        return await service.find_nearby(lat, lon, radius)
    except RoadblockError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Failed to query nearby incidents: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve nearby incidents: {str(e)}"
        )


@router.get("/incidents/{incident_id}", response_model=Incident)
async def get_incident(incident_id: str, service: IncidentService = Depends(get_incident_service)):
    try:
        return await service.get_incident(incident_id)
    except RoadblockError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Failed to get incident {incident_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve incident: {str(e)}"
        )


@router.get("/user/incidents", response_model=List[Incident])
async def list_my_incidents(
    user_id: str = Depends(get_current_user_id),
    service: IncidentService = Depends(get_incident_service),
):
    """Incidents reported by the caller, newest first (active and cleared)."""
    try:
        return await service.list_user_incidents(user_id)
    except Exception as e:
        logger.error(f"Failed to list incidents for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve user incidents: {str(e)}"
        )


@router.post("/incidents", response_model=Incident, status_code=status.HTTP_201_CREATED)
async def report_incident(
    payload: IncidentCreate,
    user_id: str = Depends(get_current_user_id),
    service: IncidentService = Depends(get_incident_service),
):
    """
    Report a new incident.

    The incident starts active with zero confirmations and dismissals.
    """
    try:
        return await service.report_incident(user_id, payload)
    except RoadblockError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"POST /incidents - Incident creation failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Incident creation failed: {str(e)}"
        )


@router.post("/incidents/{incident_id}/verify", response_model=VerificationResult)
async def verify_incident(
    incident_id: str,
    payload: Optional[VerifyRequest] = None,
    user_id: str = Depends(get_current_user_id),
    service: VerificationService = Depends(get_verification_service),
):
    """
    Confirm or dismiss an incident.

    Each user may vote once per incident. Three dismissals deactivate it.
    """
    action = payload.action if payload else None
    try:
        return await service.submit_verification(user_id, incident_id, action)
    except RoadblockError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Failed to verify incident {incident_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to verify incident: {str(e)}"
        )

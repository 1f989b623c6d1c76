"""
Incident Service - report submission and incident queries.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional
import logging

from roadblock.core.errors import InvalidInputError, NotFoundError
from roadblock.core.settings import settings
from roadblock.models.incident import Incident, IncidentCreate
from roadblock.services.storage import IncidentRepository
from roadblock.utils.geo import haversine_distance, parse_coordinates

logger = logging.getLogger(__name__)


class IncidentService:
    """Service for creating and querying incidents."""

    def __init__(self, repository: IncidentRepository):
        self.repository = repository

    async def report_incident(self, user_id: str, payload: IncidentCreate) -> Incident:
        """
        Create a new incident reported by ``user_id``.

        New incidents start active with zero confirm/dismiss counts.
        """
        incident = Incident(
            id=uuid.uuid4().hex,
            type=payload.type,
            user_id=user_id,
            latitude=payload.latitude,
            longitude=payload.longitude,
            image_url=payload.image_url,
            notes=payload.notes,
            location_name=payload.location_name,
            reported_at=datetime.now(timezone.utc),
            active=True,
            confirm_count=0,
            dismiss_count=0,
        )
        created = await self.repository.create_incident(incident)
        logger.info(f"Incident reported: {created.id} type={created.type.value} by user={user_id}")
        return created

    async def get_incident(self, incident_id: str) -> Incident:
        incident = await self.repository.get_incident(incident_id)
        if incident is None:
            raise NotFoundError()
        return incident

    async def list_active_incidents(self) -> List[Incident]:
        return await self.repository.list_active_incidents()

    async def list_user_incidents(self, user_id: str) -> List[Incident]:
        """The reporter's history, newest first, including deactivated incidents."""
        incidents = await self.repository.list_user_incidents(user_id)
        return sorted(incidents, key=lambda i: i.reported_at, reverse=True)

    async def find_nearby(
        self,
        latitude: Optional[str],
        longitude: Optional[str],
        radius: Optional[str] = None,
    ) -> List[Incident]:
        """
        Active incidents within ``radius`` meters of the given point, nearest first.

        Raw query-string values are accepted so that parsing failures map to
        InvalidInputError (HTTP 400).
        """
        if latitude in (None, "") or longitude in (None, ""):
            raise InvalidInputError("Latitude and longitude are required")

        origin = parse_coordinates(latitude, longitude)
        if origin is None:
            raise InvalidInputError("Latitude and longitude must be valid decimal degrees")

        if radius in (None, ""):
            radius_meters = float(settings.NEARBY_DEFAULT_RADIUS_METERS)
        else:
            try:
                radius_meters = float(radius)
            except (TypeError, ValueError):
                raise InvalidInputError("Radius must be a number of meters")
            if not radius_meters > 0:
                raise InvalidInputError("Radius must be positive")

        lat, lon = origin
        matches = []
        for incident in await self.repository.list_active_incidents():
            point = parse_coordinates(incident.latitude, incident.longitude)
            if point is None:
                continue
            distance = haversine_distance(lat, lon, point[0], point[1])
            if distance <= radius_meters:
                matches.append((distance, incident))

        matches.sort(key=lambda pair: pair[0])
        return [incident for _, incident in matches]

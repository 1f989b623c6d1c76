"""
Proximity alert models.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from roadblock.models.base import CamelModel
from roadblock.models.incident import IncidentType


class Position(CamelModel):
    """A live geolocation sample from the client."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ProximityStatus(str, Enum):
    ALERT = "alert"
    SUPPRESSED = "suppressed"
    CLEAR = "clear"


class ProximityAlert(CamelModel):
    """Payload the client renders as the "Roadblock Ahead!" banner."""
    incident_id: str
    incident_type: IncidentType
    distance_meters: int
    location: str
    siren: bool = True
    vibration: bool = True
    popup: bool = True


class ProximityDecision(CamelModel):
    status: ProximityStatus
    alert: Optional[ProximityAlert] = None

"""
Pydantic models for road incidents.
These models handle validation for report submission and responses.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, computed_field, field_validator

from roadblock.models.base import CamelModel
from roadblock.models.media import Media, MediaKind, parse_media


class IncidentType(str, Enum):
    """Kinds of incident a user can report."""
    ROADBLOCK = "roadblock"
    ACCIDENT = "accident"


class IncidentCreate(CamelModel):
    """
    Model for creating a new incident (incoming POST request).
    Reporter identity and timestamps are set server-side.
    """
    type: IncidentType = Field(..., description="roadblock or accident")
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")
    image_url: str = Field(..., min_length=1, description="Photo or video URI (may be a data: URI)")
    notes: Optional[str] = Field(None, max_length=1000, description="Free-text notes from the reporter")
    location_name: Optional[str] = Field(None, max_length=200, description="Human-readable location label")

    @field_validator("image_url")
    @classmethod
    def _check_media(cls, value: str) -> str:
        parse_media(value)
        return value.strip()

    class Config:
        json_schema_extra = {
            "example": {
                "type": "roadblock",
                "latitude": 13.9094,
                "longitude": -60.9789,
                "imageUrl": "https://example.com/photo.jpg",
                "notes": "Fallen tree across both lanes",
                "locationName": "Castries Highway",
            }
        }
        extra = "ignore"


class Incident(CamelModel):
    """
    A stored incident as returned by the API.
    ``active``, ``confirm_count`` and ``dismiss_count`` only change through verifications.
    """
    id: str = Field(..., description="Incident identifier")
    type: IncidentType
    user_id: str = Field(..., description="Reporter identity")
    latitude: float
    longitude: float
    image_url: str = Field(..., min_length=1)
    notes: Optional[str] = None
    location_name: Optional[str] = None
    reported_at: datetime
    active: bool = True
    confirm_count: int = Field(default=0, ge=0)
    dismiss_count: int = Field(default=0, ge=0)

    @computed_field(alias="mediaType")
    @property
    def media_type(self) -> MediaKind:
        return self.media.kind

    @property
    def media(self) -> Media:
        return parse_media(self.image_url)

"""
Per-user notification preferences.
"""

from typing import Optional

from pydantic import Field, field_validator

from roadblock.core.settings import settings
from roadblock.models.base import CamelModel


class UserSettings(CamelModel):
    """Notification preferences, one record per user."""
    user_id: str
    siren_enabled: bool = True
    vibration_enabled: bool = True
    popup_alerts_enabled: bool = True
    alert_distance_meters: int = Field(default=settings.ALERT_DISTANCE_DEFAULT_METERS, gt=0)


class SettingsUpdate(CamelModel):
    """Partial update; fields left unset keep their stored value."""
    siren_enabled: Optional[bool] = None
    vibration_enabled: Optional[bool] = None
    popup_alerts_enabled: Optional[bool] = None
    alert_distance_meters: Optional[int] = None

    @field_validator("alert_distance_meters")
    @classmethod
    def _check_distance(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return value
        low, high = settings.ALERT_DISTANCE_MIN_METERS, settings.ALERT_DISTANCE_MAX_METERS
        if not low <= value <= high:
            raise ValueError(f"alertDistanceMeters must be between {low} and {high}")
        return value

    class Config:
        extra = "ignore"

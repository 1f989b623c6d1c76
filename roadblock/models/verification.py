"""
Verification (confirm / dismiss vote) models.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from roadblock.models.base import CamelModel
from roadblock.models.incident import Incident


class VerificationAction(str, Enum):
    CONFIRM = "confirm"
    DISMISS = "dismiss"


class VerifyRequest(CamelModel):
    # Left untyped: the service validates it after the not-found and duplicate checks.
    action: Any = Field(None, description="'confirm' or 'dismiss'")


class Verification(CamelModel):
    """One user's vote on one incident. Immutable once written."""
    id: str
    incident_id: str
    user_id: str
    action: VerificationAction
    timestamp: datetime


class VerificationResult(CamelModel):
    verification: Verification
    incident: Incident

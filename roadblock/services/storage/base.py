from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional
import logging

from roadblock.core.errors import InvalidInputError
from roadblock.models.incident import Incident
from roadblock.models.user_settings import UserSettings
from roadblock.models.verification import Verification
from roadblock.services.lifecycle import LifecycleState

logger = logging.getLogger(__name__)

Transition = Callable[[LifecycleState], LifecycleState]

KEY_SEPARATOR = "__"


def verification_key(incident_id: str, voter_id: str) -> str:
    """
    Storage key of the single vote a user may cast on an incident.

    The key is only unambiguous (and a valid Firestore document id) while
    neither part contains the separator or a path slash.
    """
    for part in (incident_id, voter_id):
        if not part or KEY_SEPARATOR in part or "/" in part:
            raise InvalidInputError(f"Invalid identifier: {part!r}")
    return f"{incident_id}{KEY_SEPARATOR}{voter_id}"


class IncidentRepository(ABC):
    """
    Abstract persistence backend for incidents, verifications and settings.

    Contract:
    - All methods are coroutines; they may suspend on network I/O.
    - Lookups return None for missing records, they never raise NotFoundError.
    - ``commit_verification`` is the only way incident counts change and
      MUST be atomic per incident: the uniqueness check, the Verification
      insert and the incident update either all happen or none do.
    - Storage failures propagate as-is (or as StorageError); no retries here
      beyond what the backend's transaction mechanism does on conflict.
    """

    # Incidents

    @abstractmethod
    async def create_incident(self, incident: Incident) -> Incident:
        raise NotImplementedError

    @abstractmethod
    async def get_incident(self, incident_id: str) -> Optional[Incident]:
        raise NotImplementedError

    @abstractmethod
    async def list_active_incidents(self) -> List[Incident]:
        raise NotImplementedError

    @abstractmethod
    async def list_user_incidents(self, user_id: str) -> List[Incident]:
        raise NotImplementedError

    # Verifications

    @abstractmethod
    async def find_verification(self, voter_id: str, incident_id: str) -> Optional[Verification]:
        raise NotImplementedError

    @abstractmethod
    async def commit_verification(self, verification: Verification, transition: Transition) -> Incident:
        """
        Record ``verification`` and apply ``transition`` to the target incident.

        Raises NotFoundError if the incident is gone and DuplicateVoteError if
        the (voter, incident) pair already has a vote. Returns the updated incident.
        """
        raise NotImplementedError

    # Settings

    @abstractmethod
    async def get_settings(self, user_id: str) -> Optional[UserSettings]:
        raise NotImplementedError

    @abstractmethod
    async def upsert_settings(self, user_id: str, fields: Dict) -> UserSettings:
        """Merge ``fields`` (snake_case) into the user's settings record, creating it if absent."""
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> Dict:
        raise NotImplementedError

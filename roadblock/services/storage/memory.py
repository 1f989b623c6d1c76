"""
In-memory repository, used by the test-suite and STORAGE_BACKEND=memory.

Records live in plain dicts for the lifetime of the process. Votes on the
same incident are serialized with a per-incident asyncio.Lock held across
the whole read-decide-write sequence.
"""

import asyncio
from typing import Dict, List, Optional, Tuple
import logging

from roadblock.core.errors import DuplicateVoteError, NotFoundError
from roadblock.models.incident import Incident
from roadblock.models.user_settings import UserSettings
from roadblock.models.verification import Verification
from roadblock.services.lifecycle import LifecycleState
from roadblock.services.storage.base import IncidentRepository, Transition

logger = logging.getLogger(__name__)


class MemoryRepository(IncidentRepository):

    def __init__(self):
        self._incidents: Dict[str, Incident] = {}
        self._verifications: Dict[Tuple[str, str], Verification] = {}
        self._settings: Dict[str, UserSettings] = {}
        # One lock per stored incident, created with it.
        self._locks: Dict[str, asyncio.Lock] = {}

    async def create_incident(self, incident: Incident) -> Incident:
        self._incidents[incident.id] = incident.model_copy()
        self._locks.setdefault(incident.id, asyncio.Lock())
        return incident

    async def get_incident(self, incident_id: str) -> Optional[Incident]:
        incident = self._incidents.get(incident_id)
        return incident.model_copy() if incident else None

    async def list_active_incidents(self) -> List[Incident]:
        return [i.model_copy() for i in self._incidents.values() if i.active]

    async def list_user_incidents(self, user_id: str) -> List[Incident]:
        return [i.model_copy() for i in self._incidents.values() if i.user_id == user_id]

    async def find_verification(self, voter_id: str, incident_id: str) -> Optional[Verification]:
        return self._verifications.get((voter_id, incident_id))

    async def commit_verification(self, verification: Verification, transition: Transition) -> Incident:
        lock = self._locks.get(verification.incident_id)
        if lock is None:
            raise NotFoundError()

        async with lock:
            incident = self._incidents.get(verification.incident_id)
            if incident is None:
                raise NotFoundError()

            key = (verification.user_id, verification.incident_id)
            if key in self._verifications:
                raise DuplicateVoteError()

            # Yield like a network round-trip would; the lock keeps this safe.
            await asyncio.sleep(0)

            after = transition(LifecycleState.of(incident))
            updated = incident.model_copy(update={
                "active": after.active,
                "confirm_count": after.confirm_count,
                "dismiss_count": after.dismiss_count,
            })
            self._verifications[key] = verification
            self._incidents[updated.id] = updated
            return updated.model_copy()

    async def get_settings(self, user_id: str) -> Optional[UserSettings]:
        record = self._settings.get(user_id)
        return record.model_copy() if record else None

    async def upsert_settings(self, user_id: str, fields: Dict) -> UserSettings:
        current = self._settings.get(user_id) or UserSettings(user_id=user_id)
        updated = current.model_copy(update={**fields, "user_id": user_id})
        self._settings[user_id] = updated
        return updated.model_copy()

    async def ping(self) -> Dict:
        return {
            "database": "memory",
            "connected": True,
            "incidents_count": len(self._incidents),
        }

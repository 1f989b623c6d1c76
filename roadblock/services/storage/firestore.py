"""
Firestore repository.

Collections:
- incidents/{incident_id}
- verifications/{incident_id}__{voter_id}   (document id doubles as the uniqueness key)
- settings/{user_id}

The Firebase Admin SDK is blocking, so every call is pushed to the thread
pool. Vote commits run inside a Firestore transaction, which re-reads and
retries on contention.
"""

from typing import Dict, List, Optional
import logging

from firebase_admin import firestore
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from roadblock.config.firebase import get_db
from roadblock.core.errors import DuplicateVoteError, NotFoundError
from roadblock.models.incident import Incident
from roadblock.models.user_settings import UserSettings
from roadblock.models.verification import Verification
from roadblock.services.lifecycle import LifecycleState
from roadblock.services.storage.base import IncidentRepository, Transition, verification_key
from roadblock.utils.firestore_helpers import to_datetime, where_filter

logger = logging.getLogger(__name__)

INCIDENTS = "incidents"
VERIFICATIONS = "verifications"
SETTINGS = "settings"


def _incident_to_doc(incident: Incident) -> Dict:
    doc = incident.model_dump(exclude={"id", "media_type"}, mode="python")
    doc["type"] = incident.type.value
    return doc


def _doc_to_incident(doc) -> Optional[Incident]:
    """Build an Incident from a snapshot; malformed documents are logged and skipped."""
    data = doc.to_dict() or {}
    data["id"] = doc.id
    data["reported_at"] = to_datetime(data.get("reported_at"))
    try:
        return Incident.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Skipping malformed incident document {doc.id}: {e.error_count()} error(s)")
        return None


def _doc_to_verification(doc) -> Verification:
    data = doc.to_dict() or {}
    data["id"] = doc.id
    data["timestamp"] = to_datetime(data.get("timestamp"))
    return Verification.model_validate(data)


def _commit_vote(transaction, incident_ref, vote_ref, vote_doc: Dict, transition: Transition) -> Incident:
    """
    Body of the vote transaction. The SDK re-runs it on contention, so it
    must only read through ``transaction`` and only write at the end.
    """
    snapshot = incident_ref.get(transaction=transaction)
    if not snapshot.exists:
        raise NotFoundError()
    if vote_ref.get(transaction=transaction).exists:
        raise DuplicateVoteError()

    incident = _doc_to_incident(snapshot)
    if incident is None:
        raise NotFoundError(f"Incident {snapshot.id} is unreadable")

    after = transition(LifecycleState.of(incident))
    changes = {
        "active": after.active,
        "confirm_count": after.confirm_count,
        "dismiss_count": after.dismiss_count,
    }
    transaction.create(vote_ref, vote_doc)
    transaction.update(incident_ref, changes)
    return incident.model_copy(update=changes)


class FirestoreRepository(IncidentRepository):

    def __init__(self, db=None):
        self.db = db or get_db()

    async def create_incident(self, incident: Incident) -> Incident:
        ref = self.db.collection(INCIDENTS).document(incident.id)
        await run_in_threadpool(ref.set, _incident_to_doc(incident))
        return incident

    async def get_incident(self, incident_id: str) -> Optional[Incident]:
        doc = await run_in_threadpool(self.db.collection(INCIDENTS).document(incident_id).get)
        if not doc.exists:
            return None
        return _doc_to_incident(doc)

    async def list_active_incidents(self) -> List[Incident]:
        query = where_filter(self.db.collection(INCIDENTS), "active", "==", True)
        return await run_in_threadpool(self._collect, query)

    async def list_user_incidents(self, user_id: str) -> List[Incident]:
        query = where_filter(self.db.collection(INCIDENTS), "user_id", "==", user_id)
        return await run_in_threadpool(self._collect, query)

    def _collect(self, query) -> List[Incident]:
        incidents = []
        for doc in query.stream():
            incident = _doc_to_incident(doc)
            if incident is not None:
                incidents.append(incident)
        return incidents

    async def find_verification(self, voter_id: str, incident_id: str) -> Optional[Verification]:
        ref = self.db.collection(VERIFICATIONS).document(verification_key(incident_id, voter_id))
        doc = await run_in_threadpool(ref.get)
        if not doc.exists:
            return None
        return _doc_to_verification(doc)

    async def commit_verification(self, verification: Verification, transition: Transition) -> Incident:
        incident_ref = self.db.collection(INCIDENTS).document(verification.incident_id)
        vote_ref = self.db.collection(VERIFICATIONS).document(
            verification_key(verification.incident_id, verification.user_id)
        )
        vote_doc = verification.model_dump(exclude={"id"}, mode="python")
        vote_doc["action"] = verification.action.value

        commit = firestore.transactional(_commit_vote)
        return await run_in_threadpool(
            commit, self.db.transaction(), incident_ref, vote_ref, vote_doc, transition
        )

    async def get_settings(self, user_id: str) -> Optional[UserSettings]:
        doc = await run_in_threadpool(self.db.collection(SETTINGS).document(user_id).get)
        if not doc.exists:
            return None
        data = doc.to_dict() or {}
        data["user_id"] = doc.id
        return UserSettings.model_validate(data)

    async def upsert_settings(self, user_id: str, fields: Dict) -> UserSettings:
        ref = self.db.collection(SETTINGS).document(user_id)
        await run_in_threadpool(ref.set, {**fields, "user_id": user_id}, merge=True)
        return await self.get_settings(user_id)

    async def ping(self) -> Dict:
        collections = await run_in_threadpool(lambda: list(self.db.collections()))
        return {
            "database": "firestore",
            "connected": True,
            "collections_count": len(collections),
        }

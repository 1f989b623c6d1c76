import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from roadblock.core.errors import DuplicateVoteError, NotFoundError
from roadblock.models.incident import Incident, IncidentType
from roadblock.models.verification import Verification, VerificationAction
from roadblock.services.lifecycle import apply_verification
from roadblock.services.storage import firestore as firestore_storage
from roadblock.services.storage.firestore import (
    FirestoreRepository,
    _commit_vote,
    _doc_to_incident,
    _incident_to_doc,
)
from roadblock.utils.firestore_helpers import where_filter


def snapshot(doc_id, data):
    return SimpleNamespace(id=doc_id, to_dict=lambda: dict(data))


def make_incident():
    return Incident(
        id="abc",
        type=IncidentType.ACCIDENT,
        user_id="u1",
        latitude=13.91,
        longitude=-60.979,
        image_url="https://example.com/a.jpg",
        reported_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


def test_incident_document_shape():
    doc = _incident_to_doc(make_incident())
    assert "id" not in doc
    assert "media_type" not in doc
    assert doc["type"] == "accident"
    assert doc["active"] is True
    assert doc["dismiss_count"] == 0


def test_document_round_trip():
    incident = make_incident()
    restored = _doc_to_incident(snapshot("abc", _incident_to_doc(incident)))
    assert restored.model_dump() == incident.model_dump()


def test_legacy_string_coordinates_and_iso_timestamp():
    data = _incident_to_doc(make_incident())
    data.update(latitude="13.91", longitude="-60.979", reported_at="2024-05-01T12:00:00Z")
    restored = _doc_to_incident(snapshot("abc", data))
    assert restored.latitude == 13.91
    assert restored.reported_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_malformed_document_is_skipped():
    data = _incident_to_doc(make_incident())
    data["latitude"] = "somewhere"
    assert _doc_to_incident(snapshot("abc", data)) is None


class FakeRef:
    def __init__(self, doc_id, data=None):
        self.id = doc_id
        self.data = data

    def get(self, transaction=None):
        data = self.data
        return SimpleNamespace(id=self.id, exists=data is not None, to_dict=lambda: dict(data or {}))


class FakeTransaction:
    def __init__(self):
        self.created = []
        self.updated = []

    def create(self, ref, doc):
        self.created.append((ref.id, doc))

    def update(self, ref, changes):
        self.updated.append((ref.id, changes))


class FakeDb:
    def __init__(self):
        self.refs = {}
        self.transactions = []

    def collection(self, name):
        return SimpleNamespace(document=lambda doc_id: self.refs.setdefault((name, doc_id), FakeRef(doc_id)))

    def transaction(self):
        txn = FakeTransaction()
        self.transactions.append(txn)
        return txn


def dismiss(state):
    return apply_verification(state, VerificationAction.DISMISS, 3)


def make_vote(voter="voter"):
    return Verification(
        id=f"abc__{voter}",
        incident_id="abc",
        user_id=voter,
        action=VerificationAction.DISMISS,
        timestamp=datetime(2024, 5, 1, 12, 5, tzinfo=timezone.utc),
    )


def test_commit_vote_creates_vote_and_updates_counts():
    data = _incident_to_doc(make_incident())
    data["dismiss_count"] = 2
    txn = FakeTransaction()

    updated = _commit_vote(txn, FakeRef("abc", data), FakeRef("abc__v"), {"action": "dismiss"}, dismiss)

    assert updated.dismiss_count == 3
    assert updated.active is False
    assert txn.created == [("abc__v", {"action": "dismiss"})]
    assert txn.updated == [("abc", {"active": False, "confirm_count": 0, "dismiss_count": 3})]


def test_commit_vote_duplicate_writes_nothing():
    txn = FakeTransaction()
    existing_vote = FakeRef("abc__v", {"action": "confirm"})
    with pytest.raises(DuplicateVoteError):
        _commit_vote(txn, FakeRef("abc", _incident_to_doc(make_incident())), existing_vote, {}, dismiss)
    assert txn.created == [] and txn.updated == []


def test_commit_vote_missing_incident_writes_nothing():
    txn = FakeTransaction()
    with pytest.raises(NotFoundError):
        _commit_vote(txn, FakeRef("abc"), FakeRef("abc__v"), {}, dismiss)
    assert txn.created == [] and txn.updated == []


def test_repository_commit_runs_in_transaction_and_retries_on_fresh_state(monkeypatch):
    db = FakeDb()
    incident_ref = db.collection("incidents").document("abc")
    incident_ref.data = _incident_to_doc(make_incident())
    seen = []

    def retrying(func):
        def run(transaction, *args):
            func(transaction, *args)
            # A concurrent writer lands two dismissals; the SDK re-runs on a new attempt.
            incident_ref.data = dict(incident_ref.data, dismiss_count=2)
            return func(db.transaction(), *args)
        return run

    def transition(state):
        seen.append(state.dismiss_count)
        return dismiss(state)

    monkeypatch.setattr(firestore_storage.firestore, "transactional", retrying)

    updated = asyncio.run(FirestoreRepository(db=db).commit_verification(make_vote("v"), transition))

    assert seen == [0, 2]
    assert updated.dismiss_count == 3
    assert updated.active is False
    last = db.transactions[-1]
    assert [ref_id for ref_id, _ in last.created] == ["abc__v"]
    assert last.created[0][1]["action"] == "dismiss"
    assert "id" not in last.created[0][1]
    assert last.updated == [("abc", {"active": False, "confirm_count": 0, "dismiss_count": 3})]


def test_where_filter_uses_keyword_field_filter():
    calls = []
    query = SimpleNamespace(where=lambda **kwargs: calls.append(kwargs) or "filtered")

    assert where_filter(query, "active", "==", True) == "filtered"
    field_filter = calls[0]["filter"]
    assert (field_filter.field_path, field_filter.op_string, field_filter.value) == ("active", "==", True)

import asyncio

import pytest
from firebase_admin import exceptions
from google.auth.exceptions import DefaultCredentialsError, RefreshError

from bootstrap.coordinator import BootstrapCoordinator
from bootstrap.errors import BootstrapRecoveryError, StructureReadError
from bootstrap.status import InitStatus
from config.settings import settings
from storage.realtime_record_store import EMPTY_COLLECTION_MARKER, RealtimeDbRecordStore
from storage.record_store import RecordStoreError

from fakes import FakeReference


def test_full_layout_write_encodes_empty_collections():
    ref = FakeReference()
    store = RealtimeDbRecordStore(root=ref)
    asyncio.run(store.write("", {"doctors": {}, "users": {"u1": {"name": "x"}}}))
    assert ref.calls == [("set", "", {"doctors": EMPTY_COLLECTION_MARKER, "users": {"u1": {"name": "x"}}})]


def test_merge_update_encodes_missing_collections_and_keeps_records():
    ref = FakeReference()
    store = RealtimeDbRecordStore(root=ref)
    record = {"name": "Dentist", "description": "Medical specialty: Dentist", "createdAt": 1}
    asyncio.run(store.merge_update({"reviews": {}, "/specialties/Dentist/": record}))
    assert ref.calls == [("update", "", {"reviews": EMPTY_COLLECTION_MARKER, "specialties/Dentist": record})]


def test_read_root_decodes_marker_collections():
    ref = FakeReference({"": {"doctors": True, "users": {"u1": {"active": True}}}})
    data = asyncio.run(RealtimeDbRecordStore(root=ref).read(""))
    assert data == {"doctors": {}, "users": {"u1": {"active": True}}}


def test_read_collection_decodes_marker():
    ref = FakeReference({"doctors": True})
    assert asyncio.run(RealtimeDbRecordStore(root=ref).read("doctors")) == {}


def test_read_record_keeps_boolean_fields():
    ref = FakeReference({"doctors/d1": {"acceptsInsurance": True}})
    assert asyncio.run(RealtimeDbRecordStore(root=ref).read("doctors/d1")) == {"acceptsInsurance": True}


def test_exists_uses_shallow_get():
    ref = FakeReference({"": {"doctors": True}})
    store = RealtimeDbRecordStore(root=ref)
    assert asyncio.run(store.exists("")) is True
    assert asyncio.run(store.exists("reviews")) is False
    assert ref.calls[0] == ("get", "", True)


def test_empty_merge_update_is_skipped():
    ref = FakeReference()
    asyncio.run(RealtimeDbRecordStore(root=ref).merge_update({}))
    assert ref.calls == []


def test_firebase_errors_become_record_store_errors():
    ref = FakeReference(error=exceptions.UnavailableError("backend down"))
    store = RealtimeDbRecordStore(root=ref)
    with pytest.raises(RecordStoreError) as excinfo:
        asyncio.run(store.read("doctors"))
    assert excinfo.value.op == "read"
    assert "backend down" in str(excinfo.value)


def test_shallow_read_returns_keys_without_decoding():
    ref = FakeReference({"": {"doctors": True, "users": True}})
    data = asyncio.run(RealtimeDbRecordStore(root=ref).read("", shallow=True))
    assert data == {"doctors": True, "users": True}
    assert ref.calls == [("get", "", True)]


@pytest.mark.parametrize(
    "error",
    [RefreshError("token expired"), DefaultCredentialsError("no credentials found")],
)
def test_credential_errors_become_record_store_errors(error):
    store = RealtimeDbRecordStore(root=FakeReference(error=error))
    with pytest.raises(RecordStoreError) as excinfo:
        asyncio.run(store.exists(""))
    assert excinfo.value.op == "exists"
    assert isinstance(excinfo.value.__cause__, type(error))


def test_unconfigured_database_url_becomes_record_store_error(monkeypatch):
    monkeypatch.setattr(settings, "FIREBASE_DATABASE_URL", "")
    store = RealtimeDbRecordStore()
    with pytest.raises(RecordStoreError) as excinfo:
        asyncio.run(store.exists(""))
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_coordinator_over_denied_store_fails_cleanly():
    coord = BootstrapCoordinator(RealtimeDbRecordStore(root=FakeReference(error=RefreshError("token expired"))))

    assert asyncio.run(coord.validate_database()) is False

    with pytest.raises(BootstrapRecoveryError) as excinfo:
        asyncio.run(coord.initialize_database())
    assert isinstance(excinfo.value.original, StructureReadError)
    assert isinstance(excinfo.value.recovery, StructureReadError)
    assert coord.get_status() == InitStatus.FAILED

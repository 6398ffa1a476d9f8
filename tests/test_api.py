from fastapi.testclient import TestClient
from google.auth.exceptions import RefreshError

from app.api_service import create_app
from config.settings import settings
from models.schema import REQUIRED_COLLECTIONS
from security.operator_auth import require_operator
from storage.realtime_record_store import RealtimeDbRecordStore
from storage.record_store import InMemoryRecordStore

from fakes import FakeReference, FlakyStore

OPERATOR = {"sub": "op-1", "email": "ops@example.com", "aud": "doctorfinder-admin"}


def _client(store, bootstrap=True, as_operator=True):
    app = create_app(store=store, bootstrap_on_startup=bootstrap)
    if as_operator:
        app.dependency_overrides[require_operator] = lambda: OPERATOR
    return TestClient(app)


def test_startup_bootstraps_and_health_reports_it():
    store = InMemoryRecordStore()
    with _client(store) as client:
        r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["record_store_ok"] is True
    assert body["bootstrap"]["status"] == "initialized"
    assert set(store.dump()) == set(REQUIRED_COLLECTIONS)
    assert r.headers["X-Request-Id"]


def test_request_id_is_echoed():
    with _client(InMemoryRecordStore()) as client:
        r = client.get("/health", headers={"x-request-id": "req-123"})
    assert r.headers["X-Request-Id"] == "req-123"


def test_startup_failure_keeps_serving_and_health_is_degraded():
    store = FlakyStore(fail={"write": 2})
    with _client(store) as client:
        r = client.get("/health")
    body = r.json()
    assert body["ok"] is False
    assert body["bootstrap"]["status"] == "failed"
    assert "recovery failed" in body["bootstrap"]["last_error"]


def test_startup_with_denied_credentials_keeps_serving():
    store = RealtimeDbRecordStore(root=FakeReference(error=RefreshError("token expired")))
    with _client(store) as client:
        r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is False
    assert body["record_store_ok"] is False
    assert body["bootstrap"]["status"] == "failed"


def test_admin_requires_operator_token():
    with _client(InMemoryRecordStore(), as_operator=False) as client:
        r = client.get("/admin/bootstrap/status")
    assert r.status_code == 401
    assert r.json()["detail"] == "missing_bearer_token"


def test_admin_whoami():
    with _client(InMemoryRecordStore()) as client:
        r = client.get("/admin/whoami")
    assert r.json() == {"ok": True, "claims": {"sub": "op-1", "email": "ops@example.com", "aud": "doctorfinder-admin"}}


def test_admin_bootstrap_run_and_validate():
    store = InMemoryRecordStore()
    with _client(store, bootstrap=False) as client:
        assert client.get("/admin/bootstrap/status").json()["status"] == "absent"
        assert client.get("/admin/bootstrap/validate").json() == {"ok": True, "complete": False}

        r = client.post("/admin/bootstrap/run")
        assert r.status_code == 200
        assert r.json() == {"ok": True, "status": "initialized"}

        assert client.get("/admin/bootstrap/validate").json() == {"ok": True, "complete": True}


def test_admin_bootstrap_run_failure_returns_bootstrap_failed():
    store = FlakyStore(fail={"write": 2})
    with _client(store, bootstrap=False) as client:
        r = client.post("/admin/bootstrap/run")
    assert r.status_code == 500
    body = r.json()
    assert body["detail"] == "bootstrap_failed"
    assert body["error_type"] == "BootstrapRecoveryError"
    assert body["status"] == "failed"


def test_admin_seed_specialties_fills_gaps(partial_specialties):
    store = InMemoryRecordStore({"specialties": partial_specialties})
    with _client(store, bootstrap=False) as client:
        r = client.post("/admin/bootstrap/seed_specialties")
    body = r.json()
    assert body["added_count"] == 8
    assert body["batches"] == 2
    assert len(store.dump()["specialties"]) == 20


def test_sample_doctors_disabled_in_production(monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    monkeypatch.setattr(settings, "ALLOW_SAMPLE_DATA", False)
    with _client(InMemoryRecordStore()) as client:
        r = client.post("/admin/sample_doctors")
    assert r.status_code == 403
    assert r.json()["detail"] == "sample_data_disabled"


def test_dashboard_stats_after_sample_doctors(monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    store = InMemoryRecordStore()
    with _client(store) as client:
        assert client.get("/api/dashboard/stats").json()["doctor_count"] == 0

        r = client.post("/admin/sample_doctors")
        assert r.json()["written"] == ["john_smith@example_com", "sarah_johnson@example_com"]

        stats = client.get("/api/dashboard/stats").json()
    assert stats == {"ok": True, "doctor_count": 2, "specialty_count": 2, "catalog_size": 20}


def test_dashboard_counts_distinct_specialties(populated_doctors):
    store = InMemoryRecordStore({"doctors": populated_doctors})
    with _client(store, bootstrap=False) as client:
        stats = client.get("/api/dashboard/stats").json()
    assert stats["doctor_count"] == 3
    assert stats["specialty_count"] == 2
    assert stats["catalog_size"] == 0


def test_dashboard_requires_operator_token():
    with _client(InMemoryRecordStore(), bootstrap=False, as_operator=False) as client:
        r = client.get("/api/dashboard/stats")
    assert r.status_code == 401
    assert r.json()["detail"] == "missing_bearer_token"

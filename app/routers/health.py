from __future__ import annotations

import os
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.deps import get_coordinator, get_store
from bootstrap.coordinator import BootstrapCoordinator
from bootstrap.status import InitStatus
from config.settings import settings
from storage.record_store import RecordStore, bounded

router = APIRouter()


async def _record_store_probe(store: RecordStore, timeout_s: float = 2.0) -> Dict[str, Any]:
    """
    Read-only, bounded-time record store connectivity probe.
    - No writes
    - Shallow existence check on the root only
    """
    try:
        t0 = time.monotonic()
        await bounded(store.exists(""), timeout_s, "exists", "")
        dt_ms = int((time.monotonic() - t0) * 1000)
        return {"ok": True, "latency_ms": dt_ms}
    except Exception as e:
        return {"ok": False, "error_type": type(e).__name__, "message": str(e)}


@router.get("/health")
async def health(
    store: RecordStore = Depends(get_store),
    coordinator: BootstrapCoordinator = Depends(get_coordinator),
):
    rev = os.getenv("K_REVISION") or ""
    svc = os.getenv("K_SERVICE") or "doctorfinder-api"

    rs = await _record_store_probe(store)
    bootstrap = coordinator.state.snapshot()

    payload: Dict[str, Any] = {
        "ok": True,
        "service": "doctorfinder-api",
        "cloudrun_service": svc,
        "revision": rev,
        "environment": settings.ENVIRONMENT,
        "record_store_backend": settings.RECORD_STORE_BACKEND,
        "record_store_ok": bool(rs.get("ok", False)),
        "record_store": rs,
        "bootstrap": bootstrap,
        "time_unix": time.time(),
    }

    # A failed bootstrap needs operator action; surface it as degraded.
    if not payload["record_store_ok"] or coordinator.get_status() == InitStatus.FAILED:
        payload["ok"] = False

    return payload

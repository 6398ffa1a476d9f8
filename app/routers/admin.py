from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.deps import get_coordinator, get_store
from bootstrap.coordinator import BootstrapCoordinator
from bootstrap.samples import add_sample_doctors
from config.settings import settings
from security.operator_auth import OperatorClaims
from storage.record_store import RecordStore

router = APIRouter()
log = logging.getLogger("doctorfinder.routers.admin")


@router.get("/whoami")
def whoami(claims: dict = OperatorClaims):
    return {"ok": True, "claims": {"sub": claims.get("sub"), "email": claims.get("email"), "aud": claims.get("aud")}}


@router.get("/bootstrap/status")
def bootstrap_status(claims: dict = OperatorClaims, coordinator: BootstrapCoordinator = Depends(get_coordinator)):
    return {"ok": True, **coordinator.state.snapshot()}


@router.post("/bootstrap/run")
async def bootstrap_run(claims: dict = OperatorClaims, coordinator: BootstrapCoordinator = Depends(get_coordinator)):
    log.info(
        "admin_bootstrap_run",
        extra={"extra": {"event": "admin_bootstrap_run", "operator_sub": claims.get("sub"), "operator_email": claims.get("email")}},
    )
    # BootstrapError propagates to the app-level handler (500 bootstrap_failed).
    status = await coordinator.initialize_database()
    return {"ok": True, "status": status.value}


@router.get("/bootstrap/validate")
async def bootstrap_validate(claims: dict = OperatorClaims, coordinator: BootstrapCoordinator = Depends(get_coordinator)):
    complete = await coordinator.validate_database()
    return {"ok": True, "complete": complete}


@router.post("/bootstrap/seed_specialties")
async def bootstrap_seed_specialties(claims: dict = OperatorClaims, coordinator: BootstrapCoordinator = Depends(get_coordinator)):
    result = await coordinator.seed_specialties()
    return {"ok": True, **result.as_dict()}


@router.post("/sample_doctors")
async def sample_doctors(claims: dict = OperatorClaims, store: RecordStore = Depends(get_store)):
    if settings.ENVIRONMENT == "production" and not settings.ALLOW_SAMPLE_DATA:
        raise HTTPException(status_code=403, detail="sample_data_disabled")
    keys = await add_sample_doctors(store, timeout_s=settings.RECORD_STORE_TIMEOUT_S)
    log.info(
        "admin_sample_doctors_written",
        extra={"extra": {"event": "admin_sample_doctors_written", "keys": keys, "operator_sub": claims.get("sub")}},
    )
    return {"ok": True, "written": keys}

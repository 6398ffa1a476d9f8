from __future__ import annotations

from fastapi import APIRouter, Depends

from app.deps import get_store
from repos.doctor_repo import DoctorRepository
from repos.specialty_repo import SpecialtyRepository
from security.operator_auth import OperatorClaims
from storage.record_store import RecordStore

router = APIRouter()


@router.get("/dashboard/stats")
async def dashboard_stats(claims: dict = OperatorClaims, store: RecordStore = Depends(get_store)):
    doctors = DoctorRepository(store)
    catalog = await SpecialtyRepository(store).list_all()
    return {
        "ok": True,
        "doctor_count": await doctors.count(),
        # specialties in use across doctors, not the catalog size
        "specialty_count": len(await doctors.distinct_specialties()),
        "catalog_size": len(catalog),
    }

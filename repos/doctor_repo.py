from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Set

from config.settings import settings
from models.schema import COL_DOCTORS
from storage.record_store import RecordStore, bounded
from storage.store_factory import get_record_store


def distinct_specialties(doctors: Iterable[Dict[str, Any]]) -> Set[str]:
    return {str(d.get("specialty") or "").strip() for d in doctors} - {""}


class DoctorRepository:
    def __init__(self, store: Optional[RecordStore] = None, timeout_s: Optional[float] = None):
        self.store = store or get_record_store()
        self.timeout_s = settings.RECORD_STORE_TIMEOUT_S if timeout_s is None else timeout_s

    async def list_all(self) -> List[Dict[str, Any]]:
        tree = await bounded(self.store.read(COL_DOCTORS), self.timeout_s, "read", COL_DOCTORS)
        if not isinstance(tree, dict):
            return []
        out = []
        for doctor_id, d in tree.items():
            if not isinstance(d, dict):
                continue
            out.append({**d, "doctor_id": doctor_id})
        return out

    async def count(self) -> int:
        # shallow: record ids only
        tree = await bounded(self.store.read(COL_DOCTORS, shallow=True), self.timeout_s, "read", COL_DOCTORS)
        return len(tree) if isinstance(tree, dict) else 0

    async def distinct_specialties(self) -> Set[str]:
        return distinct_specialties(await self.list_all())

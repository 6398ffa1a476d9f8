from __future__ import annotations

from typing import Any, Dict, List, Optional

from config.settings import settings
from models.schema import COL_SPECIALTIES
from storage.record_store import RecordStore, bounded
from storage.store_factory import get_record_store


class SpecialtyRepository:
    def __init__(self, store: Optional[RecordStore] = None, timeout_s: Optional[float] = None):
        self.store = store or get_record_store()
        self.timeout_s = settings.RECORD_STORE_TIMEOUT_S if timeout_s is None else timeout_s

    async def list_all(self) -> List[Dict[str, Any]]:
        tree = await bounded(self.store.read(COL_SPECIALTIES), self.timeout_s, "read", COL_SPECIALTIES)
        if not isinstance(tree, dict):
            return []
        return [{**d, "specialty_key": k} for k, d in tree.items() if isinstance(d, dict)]

from __future__ import annotations

from functools import lru_cache

from config.settings import settings
from storage.record_store import InMemoryRecordStore, RecordStore


@lru_cache(maxsize=1)
def get_record_store() -> RecordStore:
    backend = (settings.RECORD_STORE_BACKEND or "").strip().lower()
    if backend == "memory":
        return InMemoryRecordStore()
    if backend == "firebase":
        # Imported lazily so the memory backend runs without Firebase credentials configured.
        from storage.realtime_record_store import RealtimeDbRecordStore

        return RealtimeDbRecordStore()
    raise ValueError(f"unknown RECORD_STORE_BACKEND: {settings.RECORD_STORE_BACKEND!r}")

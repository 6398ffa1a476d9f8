from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from bootstrap.errors import SeedingError
from models.schema import COL_SPECIALTIES, SPECIALTIES
from ops.metrics import Timer
from storage.record_store import RecordStore, RecordStoreError, bounded, join_path
from utils.ids import specialty_key, specialty_name

DEFAULT_BATCH_SIZE = 5


def now_ms() -> int:
    return int(time.time() * 1000)


def build_specialty_record(name: str, created_at_ms: int) -> Dict[str, Any]:
    return {
        "name": name,
        "description": f"Medical specialty: {name}",
        "createdAt": created_at_ms,
    }


def existing_specialty_names(subtree: Optional[Dict[str, Any]]) -> Set[str]:
    if not isinstance(subtree, dict):
        return set()
    return {specialty_name(k) for k in subtree.keys()}


def chunked(items: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


@dataclass
class SeedResult:
    added: List[str] = field(default_factory=list)
    batches: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return {"added": list(self.added), "added_count": len(self.added), "batches": self.batches}


class SpecialtySeeder:
    """
    Upserts the fixed specialty catalog.

    Only names missing from specialties/ are written, so existing records
    (and their createdAt) are never touched. Writes go out as merge-updates
    of at most batch_size entries each.
    """

    def __init__(
        self,
        store: RecordStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        timeout_s: Optional[float] = None,
        log: Optional[logging.Logger] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.store = store
        self.batch_size = batch_size
        self.timeout_s = timeout_s
        self.log = log or logging.getLogger("doctorfinder.bootstrap.seeder")

    async def seed(self) -> SeedResult:
        t = Timer()
        try:
            current = await bounded(self.store.read(COL_SPECIALTIES), self.timeout_s, "read", COL_SPECIALTIES)
        except RecordStoreError as e:
            self.log.error(
                "specialty_seed_read_failed",
                extra={"extra": {"event": "specialty_seed_read_failed", "error_type": type(e).__name__, "message": str(e)}},
                exc_info=True,
            )
            raise SeedingError(f"could not read {COL_SPECIALTIES}: {e}") from e

        existing = existing_specialty_names(current)
        missing = [name for name in SPECIALTIES if name not in existing]
        result = SeedResult()
        if not missing:
            self.log.info(
                "specialty_seed_noop",
                extra={"extra": {"event": "specialty_seed_noop", "existing": len(existing)}},
            )
            return result

        for batch in chunked(missing, self.batch_size):
            created_at = now_ms()
            updates = {
                join_path(COL_SPECIALTIES, specialty_key(name)): build_specialty_record(name, created_at)
                for name in batch
            }
            try:
                await bounded(self.store.merge_update(updates), self.timeout_s, "merge_update", COL_SPECIALTIES)
            except RecordStoreError as e:
                self.log.error(
                    "specialty_seed_write_failed",
                    extra={"extra": {
                        "event": "specialty_seed_write_failed",
                        "batch": list(batch),
                        "written_before_failure": len(result.added),
                        "error_type": type(e).__name__,
                        "message": str(e),
                    }},
                    exc_info=True,
                )
                raise SeedingError(f"could not write specialty batch {list(batch)}: {e}") from e
            result.added.extend(batch)
            result.batches += 1

        self.log.info(
            "specialty_seed_metrics",
            extra={"extra": {
                "event": "specialty_seed_metrics",
                "existing": len(existing),
                "added": len(result.added),
                "batches": result.batches,
                "duration_ms": t.ms(),
            }},
        )
        return result

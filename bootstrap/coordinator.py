from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from bootstrap.errors import (
    BootstrapError,
    BootstrapRecoveryError,
    SeedingError,
    StructureReadError,
    StructureWriteError,
)
from bootstrap.seeder import DEFAULT_BATCH_SIZE, SeedResult, SpecialtySeeder
from bootstrap.status import IN_FLIGHT, BootstrapState, InitStatus
from models.schema import COL_SPECIALTIES, REQUIRED_COLLECTIONS
from ops.metrics import Timer
from storage.record_store import RecordStore, RecordStoreError, bounded

ROOT = ""


@dataclass
class StructureCheck:
    complete: bool
    # shallow view of the root: top-level keys only, record bodies are never fetched
    existing_data: Optional[Dict[str, Any]]
    missing_collections: List[str] = field(default_factory=list)


@dataclass
class RepairResult:
    written: List[str] = field(default_factory=list)
    seed: Optional[SeedResult] = None


def missing_from(data: Optional[Any]) -> List[str]:
    if not isinstance(data, dict):
        return list(REQUIRED_COLLECTIONS)
    return [name for name in REQUIRED_COLLECTIONS if name not in data]


class BootstrapCoordinator:
    """
    Brings the record store to a structurally complete layout.

    Status transitions happen only inside this class. The guard against
    overlapping initialize calls is in-process only: two service instances
    may both repair the same store, which is safe because repairs only ever
    add missing collections and missing catalog entries.
    """

    def __init__(
        self,
        store: RecordStore,
        state: Optional[BootstrapState] = None,
        log: Optional[logging.Logger] = None,
        timeout_s: Optional[float] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        seeder: Optional[SpecialtySeeder] = None,
    ):
        self.store = store
        self.state = state or BootstrapState()
        self.log = log or logging.getLogger("doctorfinder.bootstrap")
        self.timeout_s = timeout_s
        self.seeder = seeder or SpecialtySeeder(store, batch_size=batch_size, timeout_s=timeout_s, log=self.log)

    # -------- status --------
    def _transition(self, status: InitStatus, error: Optional[BaseException] = None) -> None:
        prev = self.state.status
        self.state.status = status
        self.state.updated_at = time.time()
        if error is not None:
            self.state.last_error = f"{type(error).__name__}: {error}"
        elif status == InitStatus.INITIALIZED:
            self.state.last_error = None
        self.log.info(
            "bootstrap_status",
            extra={"extra": {"event": "bootstrap_status", "from": prev.value, "to": status.value}},
        )

    def get_status(self) -> InitStatus:
        return self.state.status

    # -------- structure --------
    async def check_structure(self) -> StructureCheck:
        try:
            present = await bounded(self.store.exists(ROOT), self.timeout_s, "exists", ROOT)
            data = await bounded(self.store.read(ROOT, shallow=True), self.timeout_s, "read", ROOT) if present else None
        except RecordStoreError as e:
            self.log.error(
                "structure_check_failed",
                extra={"extra": {"event": "structure_check_failed", "error_type": type(e).__name__, "message": str(e)}},
                exc_info=True,
            )
            raise StructureReadError(f"could not read store root: {e}") from e

        if data is None:
            return StructureCheck(complete=False, existing_data=None, missing_collections=list(REQUIRED_COLLECTIONS))
        missing = missing_from(data)
        return StructureCheck(
            complete=not missing,
            existing_data=data if isinstance(data, dict) else {},
            missing_collections=missing,
        )

    async def recover_structure(
        self, existing_data: Optional[Dict[str, Any]], missing_collections: Sequence[str]
    ) -> RepairResult:
        """
        Create what is missing without touching what exists.

        No existing data: one write of the full empty layout. Otherwise one
        merge-update adding only the missing collections (names outside the
        required set are ignored). The catalog is seeded afterwards when the
        store was empty or specialties/ was among the missing.
        """
        if existing_data is None:
            targets = list(REQUIRED_COLLECTIONS)
            needs_seed = True
        else:
            wanted = set(missing_collections)
            targets = [name for name in REQUIRED_COLLECTIONS if name in wanted]
            needs_seed = COL_SPECIALTIES in wanted

        result = RepairResult(written=targets)
        try:
            if existing_data is None:
                layout = {name: {} for name in REQUIRED_COLLECTIONS}
                await bounded(self.store.write(ROOT, layout), self.timeout_s, "write", ROOT)
            elif targets:
                await bounded(
                    self.store.merge_update({name: {} for name in targets}), self.timeout_s, "merge_update", ROOT
                )
        except RecordStoreError as e:
            self.log.error(
                "structure_write_failed",
                extra={"extra": {
                    "event": "structure_write_failed",
                    "full_layout": existing_data is None,
                    "collections": targets,
                    "error_type": type(e).__name__,
                    "message": str(e),
                }},
                exc_info=True,
            )
            err = StructureWriteError(f"could not create collections {targets}: {e}")
            self._transition(InitStatus.FAILED, err)
            raise err from e

        if targets:
            self.log.info(
                "structure_collections_created",
                extra={"extra": {"event": "structure_collections_created", "collections": targets, "full_layout": existing_data is None}},
            )

        if needs_seed:
            try:
                result.seed = await self.seeder.seed()
            except SeedingError as e:
                self._transition(InitStatus.FAILED, e)
                raise
        return result

    # -------- orchestration --------
    async def initialize_database(self) -> InitStatus:
        if self.state.status in IN_FLIGHT:
            self.log.info(
                "bootstrap_skipped_in_flight",
                extra={"extra": {"event": "bootstrap_skipped_in_flight", "status": self.state.status.value}},
            )
            return self.state.status

        try:
            return await self._run()
        except BaseException as e:
            # never leave the guard engaged behind a cancelled or crashed call
            if self.state.status in IN_FLIGHT:
                self._transition(InitStatus.FAILED, e)
            raise

    async def _run(self) -> InitStatus:
        t = Timer()
        self._transition(InitStatus.CHECKING)
        check: Optional[StructureCheck] = None
        try:
            check = await self.check_structure()
            if check.complete:
                self._transition(InitStatus.INITIALIZED)
                self.log.info(
                    "bootstrap_already_complete",
                    extra={"extra": {"event": "bootstrap_already_complete", "duration_ms": t.ms()}},
                )
                return InitStatus.INITIALIZED

            self._transition(InitStatus.INITIALIZING)
            await self.recover_structure(check.existing_data, check.missing_collections)
        except BootstrapError as e:
            await self._recover_after(e, check)

        self._transition(InitStatus.INITIALIZED)
        self.log.info(
            "bootstrap_metrics",
            extra={"extra": {
                "event": "bootstrap_metrics",
                "store_was_empty": bool(check and check.existing_data is None),
                "missing_collections": check.missing_collections if check else None,
                "duration_ms": t.ms(),
            }},
        )
        return InitStatus.INITIALIZED

    async def _recover_after(self, original: BootstrapError, last_check: Optional[StructureCheck]) -> None:
        """Single recovery attempt; raises BootstrapRecoveryError if it fails."""
        self._transition(InitStatus.RECOVERING, original)
        self.log.warning(
            "bootstrap_recovery_started",
            extra={"extra": {"event": "bootstrap_recovery_started", "error_type": type(original).__name__, "message": str(original)}},
        )
        try:
            try:
                check = await self.check_structure()
            except StructureReadError:
                if last_check is None:
                    raise
                self.log.warning(
                    "bootstrap_recovery_using_last_check",
                    extra={"extra": {"event": "bootstrap_recovery_using_last_check", "missing_collections": last_check.missing_collections}},
                )
                check = last_check
            repair = await self.recover_structure(check.existing_data, check.missing_collections)
            if repair.seed is None:
                # the failure may have hit seeding after the structure was already written
                await self.seeder.seed()
        except Exception as e:
            err = BootstrapRecoveryError(original, e)
            self._transition(InitStatus.FAILED, err)
            self.log.error(
                "bootstrap_recovery_failed",
                extra={"extra": {
                    "event": "bootstrap_recovery_failed",
                    "original_error_type": type(original).__name__,
                    "original_message": str(original),
                    "recovery_error_type": type(e).__name__,
                    "recovery_message": str(e),
                }},
                exc_info=True,
            )
            raise err from e

        self.log.info("bootstrap_recovery_succeeded", extra={"extra": {"event": "bootstrap_recovery_succeeded"}})

    # -------- diagnostics --------
    async def validate_database(self) -> bool:
        try:
            check = await self.check_structure()
        except BootstrapError as e:
            self.log.warning(
                "validate_database_read_failed",
                extra={"extra": {"event": "validate_database_read_failed", "error_type": type(e).__name__, "message": str(e)}},
            )
            return False
        if not check.complete:
            self.log.info(
                "validate_database_incomplete",
                extra={"extra": {"event": "validate_database_incomplete", "missing_collections": check.missing_collections}},
            )
        return check.complete

    async def seed_specialties(self) -> SeedResult:
        return await self.seeder.seed()

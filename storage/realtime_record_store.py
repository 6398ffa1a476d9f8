from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from firebase_admin import db
from firebase_admin.exceptions import FirebaseError
from google.auth.exceptions import GoogleAuthError

from storage.firebase_client import get_root_reference
from storage.record_store import RecordStoreError, split_path

log = logging.getLogger("doctorfinder.storage.rtdb")

# Realtime Database does not store empty objects: writing {} is the same as deleting.
# A top-level collection that exists but holds no records is stored as this leaf instead.
EMPTY_COLLECTION_MARKER = True


def _encode(parts: List[str], value: Any) -> Any:
    if len(parts) == 0 and isinstance(value, dict):
        return {k: (EMPTY_COLLECTION_MARKER if v == {} else v) for k, v in value.items()}
    if len(parts) == 1 and value == {}:
        return EMPTY_COLLECTION_MARKER
    return value


def _decode(parts: List[str], value: Any) -> Any:
    if len(parts) == 0 and isinstance(value, dict):
        return {k: ({} if v is EMPTY_COLLECTION_MARKER else v) for k, v in value.items()}
    if len(parts) == 1 and value is EMPTY_COLLECTION_MARKER:
        return {}
    return value


class RealtimeDbRecordStore:
    """
    RecordStore over Firebase Realtime Database.

    The Admin SDK is blocking; every call runs in a worker thread so the
    event loop stays free. merge_update() maps onto a multi-path
    Reference.update(), which the database applies atomically.
    """

    def __init__(self, root: Optional[db.Reference] = None):
        self._root = root

    @property
    def root(self) -> db.Reference:
        if self._root is None:
            self._root = get_root_reference()
        return self._root

    def _ref(self, parts: List[str]) -> db.Reference:
        return self.root.child("/".join(parts)) if parts else self.root

    async def _call(self, op: str, path: str, fn: Callable[[], Any]) -> Any:
        # Root resolution happens inside fn, so a missing URL or missing credentials land here too.
        # GoogleAuthError covers credential refresh failures and missing ADC.
        try:
            return await asyncio.to_thread(fn)
        except (FirebaseError, GoogleAuthError, RuntimeError, ValueError) as e:
            log.warning(
                "record_store_error",
                extra={"extra": {"event": "record_store_error", "op": op, "path": path or "/", "error_type": type(e).__name__, "message": str(e)}},
            )
            raise RecordStoreError(op, path, str(e)) from e

    async def exists(self, path: str) -> bool:
        parts = split_path(path)
        value = await self._call("exists", path, lambda: self._ref(parts).get(shallow=True))
        return value is not None

    async def read(self, path: str, shallow: bool = False) -> Optional[Any]:
        parts = split_path(path)
        value = await self._call("read", path, lambda: self._ref(parts).get(shallow=shallow))
        if shallow:
            # child keys only; collections come back as True either way
            return value
        return _decode(parts, value)

    async def write(self, path: str, value: Any) -> None:
        parts = split_path(path)
        encoded = _encode(parts, value)
        await self._call("write", path, lambda: self._ref(parts).set(encoded))

    async def merge_update(self, updates: Mapping[str, Any]) -> None:
        if not updates:
            return
        payload: Dict[str, Any] = {}
        for path, value in updates.items():
            parts = split_path(path)
            if not parts:
                raise ValueError("merge_update does not accept the root path")
            payload["/".join(parts)] = _encode(parts, value)
        await self._call("merge_update", ",".join(payload), lambda: self.root.update(payload))

from __future__ import annotations

import asyncio
import copy
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable


class RecordStoreError(Exception):
    """Transport/permission failure talking to the record store."""

    def __init__(self, op: str, path: str, message: str = ""):
        super().__init__(f"{op} {path or '/'} failed: {message}" if message else f"{op} {path or '/'} failed")
        self.op = op
        self.path = path


class RecordStoreTimeout(RecordStoreError):
    pass


def split_path(path: str) -> List[str]:
    """'/doctors/abc/' -> ['doctors', 'abc'];  '' and '/' are the root."""
    return [p for p in (path or "").split("/") if p]


def join_path(*parts: str) -> str:
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


@runtime_checkable
class RecordStore(Protocol):
    """
    Hierarchical key-tree store.

    - write() replaces the whole subtree at path
    - merge_update() applies every {path: value} entry in one atomic call and
      leaves siblings outside those paths untouched
    - an empty mapping is a present (not absent) value
    - read(path, shallow=True) returns only the child keys of a mapping, each
      mapped to True for nested mappings (leaves keep their value)
    """

    async def exists(self, path: str) -> bool: ...

    async def read(self, path: str, shallow: bool = False) -> Optional[Any]: ...

    async def write(self, path: str, value: Any) -> None: ...

    async def merge_update(self, updates: Mapping[str, Any]) -> None: ...


async def bounded(coro, timeout_s: Optional[float], op: str, path: str = ""):
    """Await a store call with an upper bound; a timeout becomes RecordStoreTimeout."""
    if not timeout_s or timeout_s <= 0:
        return await coro
    try:
        return await asyncio.wait_for(coro, timeout=timeout_s)
    except asyncio.TimeoutError:
        raise RecordStoreTimeout(op, path, f"timed out after {timeout_s}s")


class InMemoryRecordStore:
    """Process-local RecordStore. Used by tests and RECORD_STORE_BACKEND=memory."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        # None root == nothing stored at all
        self._root: Optional[Dict[str, Any]] = copy.deepcopy(data) if data is not None else None
        self._lock = asyncio.Lock()

    def _get(self, parts: List[str]) -> Optional[Any]:
        node: Any = self._root
        for p in parts:
            if not isinstance(node, dict) or p not in node:
                return None
            node = node[p]
        return node

    def _set(self, parts: List[str], value: Any) -> None:
        if not parts:
            self._root = copy.deepcopy(value) if value is not None else None
            return
        if self._root is None:
            self._root = {}
        node = self._root
        for p in parts[:-1]:
            nxt = node.get(p)
            if not isinstance(nxt, dict):
                nxt = {}
                node[p] = nxt
            node = nxt
        if value is None:
            node.pop(parts[-1], None)
        else:
            node[parts[-1]] = copy.deepcopy(value)

    async def exists(self, path: str) -> bool:
        return self._get(split_path(path)) is not None

    async def read(self, path: str, shallow: bool = False) -> Optional[Any]:
        node = self._get(split_path(path))
        if shallow and isinstance(node, dict):
            return {k: (True if isinstance(v, dict) else copy.deepcopy(v)) for k, v in node.items()}
        return copy.deepcopy(node)

    async def write(self, path: str, value: Any) -> None:
        async with self._lock:
            self._set(split_path(path), value)

    async def merge_update(self, updates: Mapping[str, Any]) -> None:
        # validate every path first so a rejected call applies nothing
        entries = [(split_path(path), value) for path, value in updates.items()]
        if any(not parts for parts, _ in entries):
            raise ValueError("merge_update does not accept the root path")
        async with self._lock:
            for parts, value in entries:
                self._set(parts, value)

    def dump(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._root)

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class InitStatus(str, Enum):
    ABSENT = "absent"
    CHECKING = "checking"
    INITIALIZING = "initializing"
    INITIALIZED = "initialized"
    FAILED = "failed"
    RECOVERING = "recovering"


# A second initialize call while in one of these returns without touching the store.
IN_FLIGHT = frozenset({InitStatus.CHECKING, InitStatus.INITIALIZING, InitStatus.RECOVERING})


@dataclass
class BootstrapState:
    """In-memory bootstrap status; never persisted, reset only by a restart."""

    status: InitStatus = InitStatus.ABSENT
    last_error: Optional[str] = None
    updated_at: float = field(default_factory=time.time)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "last_error": self.last_error,
            "updated_at": self.updated_at,
        }

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from bootstrap.seeder import now_ms
from models.schema import COL_DOCTORS
from storage.record_store import RecordStore, bounded, join_path
from utils.ids import safe_record_key

log = logging.getLogger("doctorfinder.bootstrap.samples")


def sample_doctors(created_at_ms: int) -> List[Dict[str, Any]]:
    return [
        {
            "name": "Dr. John Smith",
            "specialty": "Cardiologist",
            "email": "john.smith@example.com",
            "phone": "+267 1234 5678",
            "address": "123 Medical Plaza, Gaborone",
            "city": "Gaborone",
            "location": {"latitude": -24.6282, "longitude": 25.9231},
            "acceptsInsurance": True,
            "rating": 4.5,
            "reviewCount": 0,
            "createdAt": created_at_ms,
        },
        {
            "name": "Dr. Sarah Johnson",
            "specialty": "Dentist",
            "email": "sarah.johnson@example.com",
            "phone": "+267 8765 4321",
            "address": "456 Dental Center, Gaborone",
            "city": "Gaborone",
            "location": {"latitude": -24.6532, "longitude": 25.9231},
            "acceptsInsurance": True,
            "rating": 4.8,
            "reviewCount": 0,
            "createdAt": created_at_ms,
        },
    ]


async def add_sample_doctors(store: RecordStore, timeout_s: Optional[float] = None) -> List[str]:
    """Write the demo doctors keyed by sanitized email. Overwrites previous sample records only."""
    keys: List[str] = []
    for doctor in sample_doctors(now_ms()):
        key = safe_record_key(doctor["email"])
        path = join_path(COL_DOCTORS, key)
        await bounded(store.write(path, doctor), timeout_s, "write", path)
        keys.append(key)
    log.info("sample_doctors_written", extra={"extra": {"event": "sample_doctors_written", "keys": keys}})
    return keys

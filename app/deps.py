from __future__ import annotations

import logging

from fastapi import Request

from bootstrap.coordinator import BootstrapCoordinator
from config.settings import settings
from storage.record_store import RecordStore


def build_coordinator(store: RecordStore) -> BootstrapCoordinator:
    return BootstrapCoordinator(
        store,
        log=logging.getLogger("doctorfinder.bootstrap"),
        timeout_s=settings.RECORD_STORE_TIMEOUT_S,
        batch_size=settings.SPECIALTY_BATCH_SIZE,
    )


def get_store(request: Request) -> RecordStore:
    return request.app.state.record_store


def get_coordinator(request: Request) -> BootstrapCoordinator:
    return request.app.state.coordinator

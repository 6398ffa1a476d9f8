from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.deps import build_coordinator
from bootstrap.errors import BootstrapError
from config.settings import settings
from ops.structured_logger import setup_logging
from storage.record_store import RecordStore
from storage.store_factory import get_record_store
from utils.request_context import bind_request_id, get_request_id, reset_request_id

from app.routers.admin import router as admin_router
from app.routers.dashboard import router as dashboard_router
from app.routers.health import router as health_router

log = logging.getLogger("doctorfinder.api")


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or get_request_id() or ""


def _error_body(request: Request, **content) -> dict:
    return {**content, "request_id": _get_request_id(request), "revision": os.getenv("K_REVISION") or ""}


def create_app(store: Optional[RecordStore] = None, bootstrap_on_startup: Optional[bool] = None) -> FastAPI:
    """
    Build the API. `store` defaults to the configured backend; tests pass an
    InMemoryRecordStore. One BootstrapCoordinator is created per app and kept
    on app.state, so its status is shared by every request.
    """
    run_bootstrap = settings.BOOTSTRAP_ON_STARTUP if bootstrap_on_startup is None else bootstrap_on_startup

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        record_store = store or get_record_store()
        app.state.record_store = record_store
        app.state.coordinator = build_coordinator(record_store)
        if run_bootstrap:
            try:
                await app.state.coordinator.initialize_database()
            except BootstrapError as e:
                # Keep serving: /health reports the failure and operators can re-run the bootstrap.
                log.error(
                    "startup_bootstrap_failed",
                    extra={"extra": {"event": "startup_bootstrap_failed", "error_type": type(e).__name__, "message": str(e)}},
                )
        yield

    app = FastAPI(title="Doctor Finder Admin API", version="1.0.0", lifespan=lifespan)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        rid, token = bind_request_id(request.headers.get("x-request-id"))
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)
        response.headers["X-Request-Id"] = rid
        return response

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        log.warning(
            "http_exception",
            extra={
                "extra": {
                    "event": "http_exception",
                    "status_code": exc.status_code,
                    "detail": exc.detail,
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": _get_request_id(request),
                }
            },
        )
        return JSONResponse(status_code=exc.status_code, content=_error_body(request, detail=exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        log.warning(
            "validation_error",
            extra={
                "extra": {
                    "event": "validation_error",
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": _get_request_id(request),
                }
            },
        )
        return JSONResponse(status_code=422, content=_error_body(request, detail=exc.errors()))

    @app.exception_handler(BootstrapError)
    async def bootstrap_error_handler(request: Request, exc: BootstrapError):
        coordinator = getattr(request.app.state, "coordinator", None)
        status = coordinator.get_status().value if coordinator else "unknown"
        return JSONResponse(
            status_code=500,
            content=_error_body(
                request,
                detail="bootstrap_failed",
                error_type=type(exc).__name__,
                message=str(exc),
                status=status,
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log.error(
            "internal_unhandled_exception",
            extra={
                "extra": {
                    "event": "internal_unhandled_exception",
                    "error_type": type(exc).__name__,
                    "message": str(exc),
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": _get_request_id(request),
                }
            },
            exc_info=True,
        )
        return JSONResponse(status_code=500, content=_error_body(request, error="internal_unhandled_exception"))

    # The admin console is a browser app served from another origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(health_router, tags=["health"])
    app.include_router(dashboard_router, prefix="/api", tags=["dashboard"])
    app.include_router(admin_router, prefix="/admin", tags=["admin"])
    return app


setup_logging(settings.LOG_LEVEL)

app = create_app()

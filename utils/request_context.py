from __future__ import annotations

import uuid
from contextvars import ContextVar, Token

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def bind_request_id(rid: str | None) -> tuple[str, Token]:
    """Bind a request id (minting one when the caller sent none); returns it with the reset token."""
    rid = (rid or "").strip() or str(uuid.uuid4())
    return rid, _request_id_var.set(rid)


def reset_request_id(token: Token) -> None:
    _request_id_var.reset(token)


def get_request_id() -> str:
    return _request_id_var.get() or ""

from __future__ import annotations

import logging
from typing import Any, Dict, Set

from fastapi import Depends, HTTPException, Request
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from config.settings import settings

log = logging.getLogger("doctorfinder.operator_auth")


def _split_csv(v: str) -> Set[str]:
    return {x.strip() for x in (v or "").split(",") if x.strip()}


def _bearer_token(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="missing_bearer_token")
    return token.strip()


def check_operator_claims(claims: Dict[str, Any]) -> Dict[str, Any]:
    """Allow-list check on verified claims. Empty allow-lists admit any verified caller."""
    allowed_subs = _split_csv(settings.OPERATOR_INVOKER_SUBS)
    allowed_emails = _split_csv(settings.OPERATOR_INVOKER_EMAILS)

    sub = claims.get("sub", "")
    email = claims.get("email", "")

    if allowed_subs and sub not in allowed_subs:
        raise HTTPException(status_code=403, detail="operator_sub_not_allowed")
    if allowed_emails and email and email not in allowed_emails:
        raise HTTPException(status_code=403, detail="operator_email_not_allowed")
    return claims


def verify_operator_request(request: Request) -> Dict[str, Any]:
    token = _bearer_token(request)
    audience = settings.OPERATOR_AUTH_AUDIENCE
    if not audience:
        # Fail closed: the audience must be configured explicitly
        raise HTTPException(status_code=500, detail="operator_auth_audience_not_configured")

    try:
        claims = id_token.verify_oauth2_token(token, google_requests.Request(), audience=audience)
    except Exception as e:
        log.warning(
            "operator_auth_verify_failed",
            extra={"extra": {"event": "operator_auth_verify_failed", "error_type": type(e).__name__, "message": str(e)}},
        )
        raise HTTPException(status_code=401, detail="invalid_operator_token")

    return check_operator_claims(claims)


def require_operator(request: Request) -> Dict[str, Any]:
    return verify_operator_request(request)


OperatorClaims = Depends(require_operator)

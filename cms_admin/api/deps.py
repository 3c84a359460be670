from __future__ import annotations

import jwt
from fastapi import Request

from cms_admin.domain.session import SessionContext
from cms_admin.infra.auth import decode_session_token

SESSION_COOKIE_NAME = "cms_admin_session"


def get_session_context(request: Request) -> SessionContext:
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return SessionContext.anonymous()
    try:
        claims = decode_session_token(token)
    except (jwt.PyJWTError, ValueError):
        return SessionContext.anonymous()
    request.state.claims = claims
    return SessionContext.for_user(claims["sub"])

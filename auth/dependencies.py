"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The AuthService is created once in the API lifespan and parked on
app.state. Route handlers reach it through get_auth_service() so they can be
exercised against any service wired in by a test lifespan.

The session token travels only in the authToken cookie. A request whose
Cookie header lacks it is treated as presenting no token at all.

get_current_claims() runs the Verify flow; an invalid or missing token
raises UnauthorizedError, which the API exception handler turns into a 401.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.flows import AuthService
from auth.models import SessionClaims
from auth.tokens import AUTH_COOKIE_NAME


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_session_token(request: Request) -> str | None:
    """Return the authToken cookie value, or None if the request carries none."""
    return request.cookies.get(AUTH_COOKIE_NAME) or None


def get_current_claims(request: Request) -> SessionClaims:
    """Require a valid session. Raises UnauthorizedError otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: SessionClaims = Depends(get_current_claims)): ...
    """
    return get_auth_service(request).verify(get_session_token(request))

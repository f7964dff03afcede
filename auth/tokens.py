"""
auth/tokens.py -- Session token issuance/verification and the auth cookie.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the process-wide
       secret from Settings.jwt_secret and carry userId, username, iat and
       exp. Verification returns None on any failure (malformed, tampered,
       wrong key, expired) -- the flow layer turns that into a 401 without
       telling the caller which check failed.

  Lifetime: 3600 seconds by default. There is no revocation list; a token
       stays valid until exp no matter what happens to the account.

  Secret: when JWT_SECRET is unset, Settings substitutes a public literal
       and logs a warning. TokenService does not second-guess that choice.

  Cookie: "authToken", HttpOnly + Secure + SameSite=None so the browser
       frontend can send it cross-site; Max-Age matches the token lifetime so
       both expire together.

Layer rule: no imports from api/. The cookie helpers take any Starlette-style
response object.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from jose import JWTError, jwt

from auth.models import SessionClaims

_ALGORITHM = "HS256"

AUTH_COOKIE_NAME = "authToken"
DEFAULT_EXPIRE_SECONDS = 3600


# ---------------------------------------------------------------------------
# Token service
# ---------------------------------------------------------------------------


class TokenService:
    """Stateless issuer/verifier of signed session tokens.

    Usage:
        tokens = TokenService(settings.jwt_secret)
        token = tokens.issue(user.id, user.username)
        claims = tokens.verify(token)   # SessionClaims or None

    clock returns the current time in epoch seconds. Tests inject a clock in
    the past to mint tokens that are already expired.
    """

    def __init__(
        self,
        secret: str,
        expire_seconds: int = DEFAULT_EXPIRE_SECONDS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._secret = secret
        self.expire_seconds = expire_seconds
        self._clock = clock or time.time

    def issue(self, user_id: int, username: str) -> str:
        """Encode a signed JWT for the given identity, valid for expire_seconds."""
        issued_at = int(self._clock())
        payload = {
            "userId": user_id,
            "username": username,
            "iat": issued_at,
            "exp": issued_at + self.expire_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> SessionClaims | None:
        """Decode and verify a JWT. Returns the claims, or None on any failure.

        python-jose checks the signature and the exp claim against the wall
        clock; a token without exp is rejected. A payload without an integer
        userId or a string username is treated the same as a bad signature.
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[_ALGORITHM], options={"require_exp": True})
        except JWTError:
            return None
        user_id = payload.get("userId")
        username = payload.get("username")
        if not isinstance(user_id, int) or not isinstance(username, str):
            return None
        return SessionClaims(
            user_id=user_id,
            username=username,
            issued_at=int(payload.get("iat", 0)),
            expires_at=int(payload["exp"]),
        )


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, max_age: int = DEFAULT_EXPIRE_SECONDS) -> None:
    """Write the session token as the authToken cookie on the response.

    httponly=True: JS cannot read the cookie.
    secure=True: only sent over HTTPS.
    samesite="none": sent on cross-site requests (frontend on another origin).
    max_age: matches the JWT lifetime.
    """
    response.set_cookie(
        AUTH_COOKIE_NAME,
        value=token,
        max_age=max_age,
        path="/",
        secure=True,
        httponly=True,
        samesite="none",
    )


def clear_auth_cookie(response) -> None:
    """Expire the authToken cookie. The token itself stays valid until exp."""
    response.delete_cookie(
        AUTH_COOKIE_NAME,
        path="/",
        secure=True,
        httponly=True,
        samesite="none",
    )

"""
auth/flows.py -- Register, Login and Verify.

AuthService is built once at startup from the Settings object and the
credential store, and shared by every request. It holds no per-request
state; the store and the token service are the only shared pieces.

Error policy:
  ValidationError / ConflictError / UnauthorizedError are raised for the
  caller to see. Store infrastructure failures never get here -- the
  FailoverStore handed to AuthService absorbs them.

  Login answers "Invalid username or password" whether the username is
  unknown or the password is wrong, and spends the same bcrypt work on both.
  Verify answers "Unauthorized" when no token is presented and "Invalid
  token" when one is presented but fails verification. The two flows do not
  share a message; clients have relied on each wording separately.

Blocking:
  bcrypt is CPU-bound. The HTTP routes are plain def functions, so FastAPI
  runs each call in its worker thread pool rather than on the event loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from auth.errors import ConflictError, UnauthorizedError, ValidationError
from auth.models import SessionClaims
from auth.passwords import equalize_timing, hash_password, verify_password
from auth.tokens import TokenService

if TYPE_CHECKING:
    from auth.store import CredentialStore
    from core.config import Settings

logger = logging.getLogger("authgate.auth")

BAD_CREDENTIALS = "Invalid username or password"


@dataclass(frozen=True)
class LoginResult:
    """A freshly issued session token and the only user field safe to echo."""

    token: str
    username: str


class AuthService:
    """The three user-facing auth operations.

    Usage:
        service = AuthService(settings, build_credential_store(settings))
        service.register("alice", "a@x.com", "555", "p1", "p1")
        result = service.login("alice", "p1")
        claims = service.verify(result.token)
    """

    def __init__(self, settings: Settings, store: CredentialStore, tokens: TokenService | None = None) -> None:
        self.settings = settings
        self.store = store
        self.tokens = tokens or TokenService(settings.jwt_secret, expire_seconds=settings.token_expire_seconds)

    def register(
        self,
        username: str | None,
        email: str | None,
        phone: str | None,
        password: str | None,
        confirm_password: str | None,
    ) -> None:
        """Create an account. No token is issued; the caller logs in separately."""
        if not (username and email and phone and password and confirm_password):
            raise ValidationError("All fields are required")
        if password != confirm_password:
            raise ValidationError("Passwords do not match")

        password_hash = hash_password(password, self.settings.bcrypt_rounds)

        if self.store.find_by_username_or_email(username, email) is not None:
            logger.info("Registration rejected for %r: username or email taken", username)
            raise ConflictError("Username or email already exists")
        try:
            user = self.store.insert(username, email, phone, password_hash)
        except ConflictError:
            # Lost the race between the lookup above and the insert.
            logger.info("Registration rejected for %r: concurrent duplicate", username)
            raise
        logger.info("Registered user %r (id=%s)", user.username, user.id)

    def login(self, username: str | None, password: str | None) -> LoginResult:
        """Check a password and issue a session token."""
        if not (username and password):
            raise ValidationError("Username and password are required")

        user = self.store.find_by_username(username)
        if user is None:
            equalize_timing(password)
            raise UnauthorizedError(BAD_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            raise UnauthorizedError(BAD_CREDENTIALS)

        token = self.tokens.issue(user.id, user.username)
        logger.info("Login succeeded for %r", user.username)
        return LoginResult(token=token, username=user.username)

    def verify(self, token: str | None) -> SessionClaims:
        """Return the claims of a valid session token."""
        if not token:
            raise UnauthorizedError("Unauthorized")
        claims = self.tokens.verify(token)
        if claims is None:
            raise UnauthorizedError("Invalid token")
        return claims

"""
auth/errors.py -- Error taxonomy for the authentication core.

Every error carries an explicit ErrorKind:

  BUSINESS        a legitimate outcome the caller must see (bad input,
                  duplicate username/email, bad credentials).
  INFRASTRUCTURE  the durable store could not be used (connection refused,
                  timeout, broken query). FailoverStore absorbs these and
                  retries on the volatile store; they never reach a caller.

Failover decides on `kind` alone. Nothing in the codebase inspects exception
messages or driver-specific exception shapes outside DurableStore, which is
the one place SQLAlchemy errors are translated into this taxonomy.

status_code is the HTTP status the API layer answers with; message is the
exact body text, so it must never contain internal details.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INFRASTRUCTURE = "infrastructure"
    BUSINESS = "business"


class AuthError(Exception):
    """Base class for every error raised by auth/."""

    kind: ErrorKind = ErrorKind.BUSINESS
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthError):
    """Missing or mismatched input."""

    status_code = 400
    default_message = "Invalid request"


class ConflictError(AuthError):
    """Username or email already taken in the store being written to."""

    status_code = 409
    default_message = "Username or email already exists"


class UnauthorizedError(AuthError):
    """Bad credentials, or a missing/invalid/expired session token."""

    status_code = 401
    default_message = "Unauthorized"


class InfrastructureError(AuthError):
    """The durable store is unreachable or failed mid-query."""

    kind = ErrorKind.INFRASTRUCTURE
    default_message = "Credential store unavailable"

"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic beyond serialization).
Stores and flows do the work; these only own the shape.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A registered identity.

    id is assigned by whichever store accepted the record (durable or
    volatile) and is only unique within that store. password_hash is the
    bcrypt output from auth.passwords.hash_password -- never the plaintext.
    Records are written once at registration and never updated.
    """

    username: str
    email: str
    phone: str
    password_hash: str
    id: int | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class SessionClaims:
    """Decoded, verified contents of a session token.

    issued_at / expires_at are epoch seconds, matching the JWT iat/exp claims.
    """

    user_id: int
    username: str
    issued_at: int
    expires_at: int

    def to_dict(self) -> dict:
        """Return the wire form of the claims, as carried in the JWT payload."""
        return {
            "userId": self.user_id,
            "username": self.username,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }

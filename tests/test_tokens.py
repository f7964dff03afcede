"""Unit tests for auth/tokens.py -- session token issuance and verification.

Covers:
- Round trip preserves userId and username; lifetime is exactly 3600s
- Tokens are URL-safe
- Tampered, wrongly signed, malformed and expired tokens all verify to None
- Tokens lacking identity claims are rejected
"""

import re
import time

from jose import jwt

from auth.models import SessionClaims
from auth.tokens import TokenService

SECRET = "unit-test-secret"


def test_round_trip_preserves_identity() -> None:
    tokens = TokenService(SECRET)
    claims = tokens.verify(tokens.issue(42, "alice"))
    assert isinstance(claims, SessionClaims)
    assert claims.user_id == 42
    assert claims.username == "alice"


def test_lifetime_is_one_hour() -> None:
    tokens = TokenService(SECRET, clock=lambda: 1_900_000_000.0)
    payload = jwt.get_unverified_claims(tokens.issue(1, "alice"))
    assert payload["iat"] == 1_900_000_000
    assert payload["exp"] - payload["iat"] == 3600


def test_claims_wire_form() -> None:
    tokens = TokenService(SECRET)
    claims = tokens.verify(tokens.issue(7, "bob"))
    wire = claims.to_dict()
    assert wire["userId"] == 7
    assert wire["username"] == "bob"
    assert wire["exp"] - wire["iat"] == 3600


def test_token_is_url_safe() -> None:
    token = TokenService(SECRET).issue(1, "alice")
    assert re.fullmatch(r"[A-Za-z0-9_\-.]+", token)


def test_wrong_secret_is_rejected() -> None:
    token = TokenService(SECRET).issue(1, "alice")
    assert TokenService("another-secret").verify(token) is None


def test_tampered_signature_is_rejected() -> None:
    token = TokenService(SECRET).issue(1, "alice")
    head, body, sig = token.split(".")
    flipped = ("A" if sig[0] != "A" else "B") + sig[1:]
    assert TokenService(SECRET).verify(f"{head}.{body}.{flipped}") is None


def test_malformed_token_is_rejected() -> None:
    tokens = TokenService(SECRET)
    assert tokens.verify("not-a-jwt") is None
    assert tokens.verify("") is None


def test_expired_token_is_rejected() -> None:
    two_hours_ago = time.time() - 7200
    stale = TokenService(SECRET, clock=lambda: two_hours_ago).issue(1, "alice")
    assert TokenService(SECRET).verify(stale) is None


def test_token_without_identity_claims_is_rejected() -> None:
    token = jwt.encode({"sub": "alice", "exp": int(time.time()) + 60}, SECRET, algorithm="HS256")
    assert TokenService(SECRET).verify(token) is None


def test_token_without_expiry_is_rejected() -> None:
    token = jwt.encode({"userId": 1, "username": "alice"}, SECRET, algorithm="HS256")
    assert TokenService(SECRET).verify(token) is None

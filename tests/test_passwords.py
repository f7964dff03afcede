"""Unit tests for auth/passwords.py -- bcrypt hashing and verification.

Covers:
- Default cost factor is 10 and the hash never equals the plaintext
- Salting: two hashes of one password differ, both verify
- verify_password() returns False (never raises) on malformed hashes
- Passwords over 72 bytes are accepted; only the first 72 bytes count
"""

import pytest

from auth.passwords import DEFAULT_ROUNDS, MAX_PASSWORD_BYTES, equalize_timing, hash_password, verify_password


class TestHashPassword:
    def test_default_cost_factor_is_10(self) -> None:
        assert DEFAULT_ROUNDS == 10
        hashed = hash_password("s3cret")
        assert hashed.startswith("$2b$10$")

    def test_hash_is_not_plaintext(self) -> None:
        hashed = hash_password("s3cret", rounds=4)
        assert hashed
        assert hashed != "s3cret"
        assert "s3cret" not in hashed

    def test_fresh_salt_per_call(self) -> None:
        first = hash_password("same-password", rounds=4)
        second = hash_password("same-password", rounds=4)
        assert first != second
        assert verify_password("same-password", first)
        assert verify_password("same-password", second)


class TestVerifyPassword:
    def test_correct_password(self) -> None:
        assert verify_password("p1", hash_password("p1", rounds=4)) is True

    def test_wrong_password(self) -> None:
        assert verify_password("p2", hash_password("p1", rounds=4)) is False

    @pytest.mark.parametrize("bad_hash", ["", "not-a-bcrypt-hash", "$2b$10$short"])
    def test_malformed_hash_returns_false(self, bad_hash: str) -> None:
        assert verify_password("p1", bad_hash) is False

    def test_equalize_timing_returns_nothing(self) -> None:
        assert equalize_timing("whatever") is None


class TestLongPasswords:
    def test_password_over_72_bytes_hashes_and_verifies(self) -> None:
        hashed = hash_password("x" * 80, rounds=4)
        assert verify_password("x" * 80, hashed)

    def test_only_first_72_bytes_count(self) -> None:
        assert MAX_PASSWORD_BYTES == 72
        hashed = hash_password("y" * 73, rounds=4)
        assert verify_password("y" * 72, hashed)
        assert verify_password("y" * 72 + "z", hashed)
        assert not verify_password("y" * 71, hashed)

    def test_multibyte_password_over_limit(self) -> None:
        password = "é" * 50  # 100 bytes in UTF-8
        assert verify_password(password, hash_password(password, rounds=4))

"""Tests for password hashing and the registration policy."""

import pytest

from asmr.auth.password import (
    PasswordPolicyError,
    check_needs_rehash,
    hash_password,
    validate_password,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("password123")
        assert hashed.startswith("$argon2id$")
        assert verify_password("password123", hashed) is True

    def test_wrong_password_rejected(self):
        assert verify_password("wrong-password", hash_password("password123")) is False

    def test_garbage_hash_rejected(self):
        assert verify_password("password123", "not-a-hash") is False

    def test_fresh_hash_needs_no_rehash(self):
        assert check_needs_rehash(hash_password("password123")) is False


class TestPasswordPolicy:
    def test_eight_characters_accepted(self):
        validate_password("12345678")

    def test_short_password_rejected(self):
        with pytest.raises(PasswordPolicyError, match="at least 8 characters"):
            validate_password("1234567")

    def test_too_long_password_rejected(self):
        with pytest.raises(PasswordPolicyError):
            validate_password("a" * 129)

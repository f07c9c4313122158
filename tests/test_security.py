"""
Unit tests for password hashing and the password policy.

Tests:
- bcrypt hash/verify
- Legacy scrypt "digest.salt" verification
- Malformed stored values fail closed
- Password policy rules
"""

import hashlib
import pytest

from app.core.security import (
    check_password_policy,
    get_password_hash,
    is_current_hash,
    is_expired,
    needs_rehash,
    verify_password,
)


def legacy_hash(password: str, salt: str = "a1b2c3d4e5f60718") -> str:
    digest = hashlib.scrypt(password.encode(), salt=salt.encode(), n=16384, r=8, p=1, dklen=64)
    return f"{digest.hex()}.{salt}"


class TestBcrypt:
    def test_hash_verifies_original_password(self):
        hashed = get_password_hash("SecurePass123!")
        assert verify_password("SecurePass123!", hashed)

    def test_hash_rejects_other_password(self):
        hashed = get_password_hash("SecurePass123!")
        assert not verify_password("SecurePass123?", hashed)
        assert not verify_password("securepass123!", hashed)

    def test_new_hashes_are_bcrypt(self):
        hashed = get_password_hash("SecurePass123!")
        assert hashed.startswith("$2")
        assert is_current_hash(hashed)
        assert not needs_rehash(hashed)

    def test_same_password_gets_different_salts(self):
        assert get_password_hash("SecurePass123!") != get_password_hash("SecurePass123!")

    def test_bytes_past_the_bcrypt_limit_are_not_ignored(self):
        password = "Aa1!" + "a" * 68
        hashed = get_password_hash(password)

        assert verify_password(password, hashed)
        assert not verify_password(password + "x", hashed)

    def test_over_long_password_is_not_hashed(self):
        with pytest.raises(ValueError):
            get_password_hash("Aa1!" + "\u20ac" * 60)


class TestLegacyHashes:
    def test_legacy_hash_verifies(self):
        stored = legacy_hash("OldPassword1!")
        assert verify_password("OldPassword1!", stored)

    def test_legacy_hash_rejects_other_password(self):
        stored = legacy_hash("OldPassword1!")
        assert not verify_password("OldPassword2!", stored)

    def test_legacy_hash_needs_rehash(self):
        assert needs_rehash(legacy_hash("OldPassword1!"))

    @pytest.mark.parametrize("stored", [
        "no-separator-at-all",
        "deadbeef.",
        "not-hex.salt",
        "",
    ])
    def test_malformed_values_fail_closed(self, stored):
        assert verify_password("anything", stored) is False

    def test_missing_password_fails_closed(self):
        assert verify_password("", get_password_hash("SecurePass123!")) is False
        assert verify_password("SecurePass123!", None) is False


class TestPasswordPolicy:
    def test_accepts_conforming_password(self):
        assert check_password_policy("SecurePass123!") == "SecurePass123!"

    @pytest.mark.parametrize("password, fragment", [
        ("Sh0rt!", "at least 8"),
        ("A1!" + "a" * 62, "cannot exceed 64"),
        ("Aa1!" + "\u20ac" * 60, "cannot exceed 72 bytes"),
        ("ALLUPPERCASE1!", "lowercase"),
        ("alllowercase1", "uppercase"),
        ("NoDigitsHere!", "number"),
        ("NoSymbols123", "special character"),
    ])
    def test_rejects_each_missing_rule(self, password, fragment):
        with pytest.raises(ValueError) as exc_info:
            check_password_policy(password)
        assert fragment in str(exc_info.value)


def test_missing_expiry_counts_as_expired():
    assert is_expired(None)

"""
Unit Tests for Security Module
Tests for: password hashing, JWT tokens, token types and expiry
"""
import pytest
from datetime import datetime, timedelta
from jose import jwt

from app.core.config import settings
from app.core.exceptions import InvalidTokenError
from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_password_reset_token,
    decode_token,
)


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_password_returns_different_value(self):
        password = "testpassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert hashed.startswith("$2")

    def test_hash_password_different_each_time(self):
        # Bcrypt generates different salts
        assert get_password_hash("same") != get_password_hash("same")

    def test_verify_password_correct(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("testpassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("wrongpassword", hashed) is False

    def test_verify_against_non_bcrypt_value(self):
        assert verify_password("anything", "plain-text-not-a-hash") is False

    def test_long_password_truncated_consistently(self):
        """Bcrypt only looks at the first 72 bytes"""
        long_password = "a" * 100
        hashed = get_password_hash(long_password)

        assert verify_password("a" * 72, hashed) is True


class TestAccessTokens:
    """Test JWT access token creation and decoding"""

    def test_token_carries_principal_claims(self):
        token = create_access_token({"sub": "abc", "role": "faculty", "email": "f@unitrack.edu"})

        payload = decode_token(token)

        assert payload["sub"] == "abc"
        assert payload["role"] == "faculty"
        assert payload["type"] == "access"

    def test_default_lifetime_is_configured_minutes(self):
        issued = datetime(2026, 1, 1, 12, 0, 0)
        token = create_access_token({"sub": "abc"}, issued_at=issued)

        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": False}
        )

        assert payload["exp"] - payload["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    def test_valid_just_before_expiry(self):
        issued = datetime(2026, 1, 1, 12, 0, 0)
        token = create_access_token({"sub": "abc"}, issued_at=issued)
        almost = issued + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES) - timedelta(seconds=1)

        assert decode_token(token, now=almost)["sub"] == "abc"

    def test_invalid_at_expiry(self):
        issued = datetime(2026, 1, 1, 12, 0, 0)
        token = create_access_token({"sub": "abc"}, issued_at=issued)
        expiry = issued + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        with pytest.raises(InvalidTokenError):
            decode_token(token, now=expiry)

    def test_expired_against_wall_clock(self):
        token = create_access_token({"sub": "abc"}, expires_delta=timedelta(seconds=-1))

        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_wrong_secret_rejected(self):
        token = jwt.encode({"sub": "abc", "type": "access"}, "another-secret", algorithm="HS256")

        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(InvalidTokenError):
            decode_token("not.a.jwt")


class TestPasswordResetTokens:

    def test_reset_token_is_not_an_access_token(self):
        token = create_password_reset_token("abc", "s@unitrack.edu")

        with pytest.raises(InvalidTokenError):
            decode_token(token)

        assert decode_token(token, expected_type="password_reset")["email"] == "s@unitrack.edu"

    def test_access_token_is_not_a_reset_token(self):
        token = create_access_token({"sub": "abc"})

        with pytest.raises(InvalidTokenError):
            decode_token(token, expected_type="password_reset")

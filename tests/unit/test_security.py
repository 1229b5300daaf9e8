"""
Unit Tests for Security Module
Tests for: password hashing, JWT tokens
"""
import pytest
from datetime import timedelta
from jose import jwt

from examcase.core.config import settings
from examcase.core.exceptions import AuthenticationError
from examcase.core.security import (
    create_access_token,
    create_refresh_token,
    create_token_pair,
    decode_token,
    get_password_hash,
    verify_password,
)


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_and_verify(self):
        hashed = get_password_hash("testpassword123")

        assert hashed != "testpassword123"
        assert verify_password("testpassword123", hashed) is True
        assert verify_password("wrongpassword", hashed) is False

    def test_hash_different_each_time(self):
        # Bcrypt generates different salts
        assert get_password_hash("same") != get_password_hash("same")

    def test_hash_long_password_truncated(self):
        long_password = "a" * 100
        hashed = get_password_hash(long_password)

        assert verify_password(long_password, hashed) is True


class TestTokens:
    """Test JWT creation and decoding"""

    def test_access_token_type(self):
        payload = decode_token(create_access_token({"sub": "user-1"}))

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"

    def test_refresh_token_type(self):
        payload = decode_token(create_refresh_token({"sub": "user-1"}))
        assert payload["type"] == "refresh"

    def test_token_pair(self):
        tokens = create_token_pair("user-1", "head@example.com")

        assert tokens["token_type"] == "bearer"
        assert decode_token(tokens["access_token"])["email"] == "head@example.com"
        assert decode_token(tokens["refresh_token"])["type"] == "refresh"

    def test_expired_token_rejected(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-1))

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_foreign_signature_rejected(self):
        token = jwt.encode({"sub": "user-1"}, "another-secret", algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(AuthenticationError):
            decode_token(token)

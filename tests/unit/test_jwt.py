# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for JWT token utilities.

Tests the JWTManager class and token operations.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from jose import jwt
from pydantic import SecretStr

from src.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-jwt-testing")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


class TestJWTManager:
    """Tests for JWTManager class."""

    def test_create_and_decode_access_token(self, jwt_manager: JWTManager) -> None:
        """Test that a created token decodes to the same claims."""
        token = jwt_manager.create_access_token(
            user_id="user-123",
            user_type="school_admin",
            roles=["admin"],
            permissions=["programs:update"],
        )

        payload = jwt_manager.decode_token(token, expected_type="access")

        assert isinstance(payload, TokenPayload)
        assert payload.sub == "user-123"
        assert payload.type == "access"
        assert payload.user_type == "school_admin"
        assert payload.roles == ["admin"]
        assert payload.permissions == ["programs:update"]

    def test_default_lifetime(self, jwt_manager: JWTManager) -> None:
        """Test that tokens expire after the configured minutes."""
        payload = jwt_manager.decode_token(jwt_manager.create_access_token(user_id="u1"))

        assert payload.exp - payload.iat == 30 * 60

    def test_tokens_have_unique_ids(self, jwt_manager: JWTManager) -> None:
        """Test that every token carries a distinct jti."""
        first = jwt_manager.decode_token(jwt_manager.create_access_token(user_id="u1"))
        second = jwt_manager.decode_token(jwt_manager.create_access_token(user_id="u1"))

        assert first.jti != second.jti

    def test_expired_token(self, jwt_manager: JWTManager) -> None:
        """Test that an expired token raises TokenExpiredError."""
        token = jwt_manager.create_access_token(
            user_id="u1",
            expires_in=timedelta(seconds=-1),
        )

        with pytest.raises(TokenExpiredError):
            jwt_manager.decode_token(token)

    def test_wrong_token_type(
        self,
        jwt_manager: JWTManager,
        jwt_settings: MagicMock,
    ) -> None:
        """Test that a refresh token is rejected where access is expected."""
        token = jwt.encode(
            {"sub": "u1", "type": "refresh", "exp": 9999999999, "iat": 0, "jti": "x"},
            jwt_settings.secret_key.get_secret_value(),
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError, match="Expected access token"):
            jwt_manager.decode_token(token, expected_type="access")

    def test_malformed_token(self, jwt_manager: JWTManager) -> None:
        """Test that garbage input raises InvalidTokenError."""
        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token("not-a-jwt")

    def test_wrong_secret(self, jwt_manager: JWTManager) -> None:
        """Test that a token signed with another key is rejected."""
        other = MagicMock()
        other.secret_key = SecretStr("another-secret")
        other.algorithm = "HS256"
        other.access_token_expire_minutes = 30
        token = JWTManager(other).create_access_token(user_id="u1")

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token)

    def test_missing_claims(
        self,
        jwt_manager: JWTManager,
        jwt_settings: MagicMock,
    ) -> None:
        """Test that a signed token without required claims is rejected."""
        token = jwt.encode(
            {"sub": "u1", "exp": 9999999999},
            jwt_settings.secret_key.get_secret_value(),
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError, match="Invalid token claims"):
            jwt_manager.decode_token(token)

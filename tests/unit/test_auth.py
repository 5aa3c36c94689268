"""Tests for auth utility functions."""
import pytest
from datetime import timedelta


class TestJWTTokens:
    """Tests for JWT token functions."""

    def test_create_access_token_basic(self):
        """Test creating a basic JWT access token."""
        from okr_service.utils.auth import create_access_token

        token = create_access_token(user_id="user123", tenant_id="tenant1")

        assert isinstance(token, str)
        assert len(token) > 0

    def test_create_access_token_with_expiration(self):
        """Test creating a token with custom expiration."""
        from okr_service.utils.auth import create_access_token

        token = create_access_token(
            user_id="user123",
            tenant_id="tenant1",
            expires_delta=timedelta(hours=1),
        )

        assert isinstance(token, str)

    def test_verify_access_token_valid(self):
        """Test verifying a valid access token returns the caller scope."""
        from okr_service.utils.auth import create_access_token, verify_access_token

        token = create_access_token(user_id="user123", tenant_id="tenant1")

        scope = verify_access_token(token)

        assert scope.user_id == "user123"
        assert scope.tenant_id == "tenant1"

    def test_verify_access_token_invalid(self):
        """Test verifying an invalid token."""
        from jose import JWTError
        from okr_service.utils.auth import verify_access_token

        with pytest.raises(JWTError):
            verify_access_token("invalid.token.here")

    def test_verify_access_token_expired(self):
        """Test verifying an expired token."""
        from jose import JWTError
        from okr_service.utils.auth import create_access_token, verify_access_token

        token = create_access_token(
            user_id="user123",
            tenant_id="tenant1",
            expires_delta=timedelta(seconds=-1),
        )

        with pytest.raises(JWTError):
            verify_access_token(token)

    def test_verify_access_token_missing_tenant(self):
        """Test a token without tenant claim is rejected."""
        from jose import JWTError, jwt
        from okr_service.config import settings
        from okr_service.utils.auth import verify_access_token

        token = jwt.encode({"sub": "user123"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)

        with pytest.raises(JWTError):
            verify_access_token(token)

    def test_verify_access_token_wrong_secret(self):
        """Test a token signed with another secret is rejected."""
        from jose import JWTError, jwt
        from okr_service.config import settings
        from okr_service.utils.auth import verify_access_token

        token = jwt.encode(
            {"sub": "user123", "tenant_id": "tenant1"},
            "another-secret",
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(JWTError):
            verify_access_token(token)

    def test_token_contains_claims(self):
        """Test that token payload contains user and tenant."""
        from jose import jwt
        from okr_service.config import settings
        from okr_service.utils.auth import create_access_token

        token = create_access_token(user_id="user123", tenant_id="tenant1")

        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])

        assert payload["sub"] == "user123"
        assert payload["tenant_id"] == "tenant1"
        assert "exp" in payload

    def test_different_tenants_different_tokens(self):
        """Test that the same user in two tenants gets different tokens."""
        from okr_service.utils.auth import create_access_token

        token1 = create_access_token(user_id="user1", tenant_id="tenant1")
        token2 = create_access_token(user_id="user1", tenant_id="tenant2")

        assert token1 != token2

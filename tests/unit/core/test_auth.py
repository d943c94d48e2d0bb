"""Unit tests for authentication utilities"""
import pytest
from datetime import timedelta
from jose import jwt

from judging.core.auth import (
    AuthError,
    Principal,
    create_access_token,
    decode_access_token,
    principal_from_token,
)
from judging.core.config import settings
from judging.db.enums import Role


class TestTokenGeneration:
    """Tests for JWT token generation"""

    def test_create_access_token(self):
        """Test creating access token"""
        token = create_access_token("user-123", Role.AUDITOR)

        assert isinstance(token, str)
        assert len(token) > 0

    def test_create_access_token_with_expiration(self):
        """Test creating token with custom expiration"""
        token = create_access_token("user-123", Role.BOARD, expires_delta=timedelta(minutes=60))

        payload = decode_access_token(token)
        assert "exp" in payload
        assert payload["sub"] == "user-123"
        assert payload["role"] == "BOARD"

    def test_decode_access_token_invalid(self):
        """Test decoding invalid token raises error"""
        with pytest.raises(AuthError):
            decode_access_token("invalid.token.here")

    def test_expired_token_rejected(self):
        """Test that an expired token does not decode"""
        token = create_access_token("user-123", Role.JUDGE, expires_delta=timedelta(minutes=-5))

        with pytest.raises(AuthError):
            decode_access_token(token)


class TestPrincipal:
    """Tests for building a Principal from a token"""

    def test_principal_from_token(self):
        """Test that user id and role come from the claims"""
        token = create_access_token("judge-1", Role.JUDGE)

        assert principal_from_token(token) == Principal(user_id="judge-1", role=Role.JUDGE)

    def test_lowercase_role_claim_accepted(self):
        """Test that role claims are parsed case-insensitively"""
        token = jwt.encode({"sub": "tally-1", "role": "tally_master"}, settings.secret_key, algorithm=settings.algorithm)

        assert principal_from_token(token).role == Role.TALLY_MASTER

    @pytest.mark.parametrize(
        "claims",
        [
            {"role": "JUDGE"},
            {"sub": "someone", "role": "SUPERUSER"},
            {"sub": "someone"},
        ],
    )
    def test_bad_claims_rejected(self, claims):
        """Test that a missing subject or unknown role is not authenticated"""
        token = jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)

        with pytest.raises(AuthError):
            principal_from_token(token)

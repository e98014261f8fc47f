"""
Clipstream Authentication Module Test Suite

Covers backend/app/core/auth.py:
- Access token creation (claims, expiry, signature)
- get_current_user_id dependency: valid, missing, malformed, expired,
  wrongly signed and non-UUID subject tokens
"""

import uuid

from datetime import UTC, datetime, timedelta

import pytest

from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from app.config import Settings
from app.core.auth import create_access_token, get_current_user_id


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestCreateAccessToken:
    """Test suite for create_access_token."""

    def test_token_carries_subject_and_timestamps(
        self, test_settings: Settings, owner_id: str
    ) -> None:
        token = create_access_token(owner_id, test_settings)

        payload = jwt.decode(token, test_settings.secret_key, algorithms=["HS256"])

        assert payload["sub"] == owner_id
        assert "exp" in payload
        assert "iat" in payload

    def test_token_expires_after_configured_hours(
        self, test_settings: Settings, owner_id: str
    ) -> None:
        token = create_access_token(owner_id, test_settings)

        payload = jwt.decode(token, test_settings.secret_key, algorithms=["HS256"])

        expected = payload["iat"] + test_settings.jwt_expiration_hours * 3600
        # Allow 5 seconds tolerance for test execution time
        assert abs(payload["exp"] - expected) < 5

    def test_token_rejected_with_other_secret(
        self, test_settings: Settings, owner_id: str
    ) -> None:
        token = create_access_token(owner_id, test_settings)

        with pytest.raises(jwt.JWTError):
            jwt.decode(token, "another-secret-key-that-is-long-enough!!", algorithms=["HS256"])


class TestGetCurrentUserId:
    """Test suite for the get_current_user_id dependency."""

    async def test_valid_token_yields_user_id(
        self, test_settings: Settings, owner_id: str
    ) -> None:
        token = create_access_token(owner_id, test_settings)

        user_id = await get_current_user_id(_credentials(token), test_settings)

        assert user_id == owner_id

    async def test_subject_is_canonicalized(self, test_settings: Settings) -> None:
        raw = uuid.uuid4()
        token = create_access_token(str(raw).upper(), test_settings)

        user_id = await get_current_user_id(_credentials(token), test_settings)

        assert user_id == str(raw)

    async def test_missing_credentials_raises_401(self, test_settings: Settings) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(None, test_settings)

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    async def test_malformed_token_raises_401(self, test_settings: Settings) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(_credentials("not-a-jwt"), test_settings)

        assert exc_info.value.status_code == 401

    async def test_expired_token_raises_401(self, test_settings: Settings, owner_id: str) -> None:
        past = datetime.now(UTC) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": owner_id, "iat": past, "exp": past + timedelta(hours=1)},
            test_settings.secret_key,
            algorithm="HS256",
        )

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(_credentials(token), test_settings)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["message"] == "Token has expired"

    async def test_wrong_signature_raises_401(self, test_settings: Settings, owner_id: str) -> None:
        token = jwt.encode(
            {"sub": owner_id, "exp": datetime.now(UTC) + timedelta(hours=1)},
            "some-other-secret-key-for-signing-32-chars",
            algorithm="HS256",
        )

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(_credentials(token), test_settings)

        assert exc_info.value.status_code == 401

    @pytest.mark.parametrize("subject", ["user-123", ""])
    async def test_non_uuid_subject_raises_401(
        self, test_settings: Settings, subject: str
    ) -> None:
        token = jwt.encode(
            {"sub": subject, "exp": datetime.now(UTC) + timedelta(hours=1)},
            test_settings.secret_key,
            algorithm="HS256",
        )

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(_credentials(token), test_settings)

        assert exc_info.value.status_code == 401

    async def test_missing_subject_raises_401(self, test_settings: Settings) -> None:
        token = jwt.encode(
            {"exp": datetime.now(UTC) + timedelta(hours=1)},
            test_settings.secret_key,
            algorithm="HS256",
        )

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(_credentials(token), test_settings)

        assert exc_info.value.status_code == 401

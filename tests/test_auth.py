"""Tests for bearer token dependencies."""

import pytest

from common.auth import JWTAuth, create_auth_dependency, create_optional_auth_dependency
from common.utils.exceptions import UnauthorizedException


@pytest.fixture
def auth():
    return JWTAuth(secret="test-secret")


@pytest.fixture
def require_user_id(auth):
    return create_auth_dependency(lambda: auth)


@pytest.fixture
def optional_user_id(auth):
    return create_optional_auth_dependency(lambda: auth)


class TestRequiredAuth:
    @pytest.mark.asyncio
    async def test_valid_token_yields_subject(self, auth, require_user_id):
        token = await auth.create_token("user_mentor")

        assert await require_user_id(authorization=f"Bearer {token}") == "user_mentor"

    @pytest.mark.asyncio
    async def test_missing_header(self, require_user_id):
        with pytest.raises(UnauthorizedException) as exc_info:
            await require_user_id(authorization=None)

        assert exc_info.value.code == "UNAUTHENTICATED"

    @pytest.mark.asyncio
    async def test_wrong_scheme(self, require_user_id):
        with pytest.raises(UnauthorizedException) as exc_info:
            await require_user_id(authorization="Basic abc")

        assert exc_info.value.code == "INVALID_AUTH_SCHEME"

    @pytest.mark.asyncio
    async def test_expired_token(self, require_user_id):
        expired = JWTAuth(secret="test-secret", access_token_expire_minutes=-1)
        token = await expired.create_token("user_mentor")

        with pytest.raises(UnauthorizedException) as exc_info:
            await require_user_id(authorization=f"Bearer {token}")

        assert exc_info.value.code == "INVALID_TOKEN"


class TestOptionalAuth:
    @pytest.mark.asyncio
    async def test_anonymous_is_none(self, optional_user_id):
        assert await optional_user_id(authorization=None) is None

    @pytest.mark.asyncio
    async def test_garbage_token_is_none(self, optional_user_id):
        assert await optional_user_id(authorization="Bearer not-a-jwt") is None

    @pytest.mark.asyncio
    async def test_token_signed_elsewhere_is_none(self, optional_user_id):
        other = JWTAuth(secret="other-secret")
        token = await other.create_token("user_mentor")

        assert await optional_user_id(authorization=f"Bearer {token}") is None

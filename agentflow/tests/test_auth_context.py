"""Tests for identity resolution from request headers."""

import pytest
pytestmark = pytest.mark.security

from agentflow.auth.context import AuthContextDataBuilder, AuthContextService
from agentflow.auth.types import AuthContextStorage
from agentflow.core.exceptions import UnauthorizedException


class _StaticProvider:
    """Accepts a single token and returns fixed claims."""

    def __init__(self, token: str, claims: dict):
        self.token = token
        self.claims = claims

    async def verify_token(self, token: str) -> dict:
        if token != self.token:
            raise UnauthorizedException("UNAUTHORIZED", "bad token")
        return self.claims


class TestDevUser:
    def test_parses_prefixed_headers(self):
        context = AuthContextDataBuilder.get_dev_user(
            {
                "x-dev-jwt-sub": "user-1",
                "X-Dev-Jwt-Roles": '["admin", "viewer"]',
                "x-dev-jwt-age": "42",
                "content-type": "application/json",
            }
        )
        assert context == {"sub": "user-1", "roles": ["admin", "viewer"], "age": 42}

    def test_no_dev_headers_returns_none(self):
        assert AuthContextDataBuilder.get_dev_user({"accept": "*/*"}) is None
        assert AuthContextDataBuilder.get_dev_user(None) is None


class TestAuthContextService:
    @pytest.mark.asyncio
    async def test_dev_mode_uses_dev_headers(self):
        service = AuthContextService(dev_mode=True)
        storage = await service.init({"x-dev-jwt-sub": "dev-user"})
        assert storage.sub == "dev-user"

    @pytest.mark.asyncio
    async def test_dev_mode_accepts_dev_user_header(self):
        service = AuthContextService(dev_mode=True)
        storage = await service.init({"x-dev-user": "plain-user"})
        assert storage.sub == "plain-user"

    @pytest.mark.asyncio
    async def test_dev_headers_ignored_outside_dev_mode(self):
        service = AuthContextService(dev_mode=False)
        storage = await service.init({"x-dev-jwt-sub": "dev-user"})
        assert storage.sub is None

    @pytest.mark.asyncio
    async def test_bearer_token_verified_by_provider(self):
        provider = _StaticProvider("good", {"sub": "token-user", "email": "a@example.com"})
        service = AuthContextService(provider=provider)

        storage = await service.init({"authorization": "Bearer good"})
        assert storage.sub == "token-user"
        assert storage.data["email"] == "a@example.com"

        with pytest.raises(UnauthorizedException):
            await service.init({"authorization": "Bearer bad"})

    @pytest.mark.asyncio
    async def test_missing_token_gives_empty_context(self):
        service = AuthContextService(provider=_StaticProvider("good", {"sub": "x"}))
        storage = await service.init({})
        assert storage.data == {}

    def test_get_token_takes_last_segment(self):
        assert AuthContextService.get_token({"authorization": "Bearer abc"}) == "abc"
        assert AuthContextService.get_token({"authorization": "abc"}) == "abc"
        assert AuthContextService.get_token({"authorization": "Bearer tok "}) == "tok"
        assert AuthContextService.get_token({"authorization": "Bearer\t tok"}) == "tok"
        assert AuthContextService.get_token({"authorization": "   "}) is None
        assert AuthContextService.get_token({}) is None


class TestStorage:
    def test_check_sub(self):
        assert AuthContextStorage({"sub": "u"}).check_sub() == "u"

    def test_check_sub_without_sub_raises(self):
        with pytest.raises(UnauthorizedException) as exc_info:
            AuthContextStorage({"sub": ""}).check_sub()
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "No sub"

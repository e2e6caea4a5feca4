"""Tests for JWT verification against mocked JWKS endpoints."""

import json
import time

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

pytestmark = pytest.mark.security

from agentflow.auth.jwks import RemoteJWKSet
from agentflow.auth.providers import Auth0Provider, KeycloakProvider, LogtoProvider, build_auth_provider
from agentflow.config import Settings
from agentflow.core.exceptions import UnauthorizedException


def _rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _jwk(private_key, kid: str) -> dict:
    jwk = json.loads(RSAAlgorithm.to_jwk(private_key.public_key()))
    jwk.update({"kid": kid, "alg": "RS256", "use": "sig"})
    return jwk


def _token(private_key, kid: str, **claims) -> str:
    pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    payload = {"sub": "user-1", "exp": int(time.time()) + 300, **claims}
    return jwt.encode(payload, pem, algorithm="RS256", headers={"kid": kid})


class JwksServer:
    """httpx transport serving a mutable key set and counting fetches."""

    def __init__(self, keys):
        self.keys = list(keys)
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        return httpx.Response(200, json={"keys": self.keys})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture(scope="module")
def signing_key():
    return _rsa_key()


class TestAuth0Provider:
    @pytest.mark.asyncio
    async def test_valid_token(self, signing_key):
        server = JwksServer([_jwk(signing_key, "k1")])
        provider = Auth0Provider("tenant.example.com", "api://agentflow", http_client=server.client())

        token = _token(signing_key, "k1", iss="https://tenant.example.com/", aud="api://agentflow")
        claims = await provider.verify_token(token)

        assert claims["sub"] == "user-1"
        assert server.requests == ["https://tenant.example.com/.well-known/jwks.json"]

    @pytest.mark.asyncio
    async def test_wrong_audience_rejected(self, signing_key):
        server = JwksServer([_jwk(signing_key, "k1")])
        provider = Auth0Provider("tenant.example.com", "api://agentflow", http_client=server.client())

        token = _token(signing_key, "k1", iss="https://tenant.example.com/", aud="api://other")
        with pytest.raises(UnauthorizedException):
            await provider.verify_token(token)

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, signing_key):
        server = JwksServer([_jwk(signing_key, "k1")])
        provider = Auth0Provider("tenant.example.com", http_client=server.client())

        token = _token(signing_key, "k1", iss="https://tenant.example.com/", exp=int(time.time()) - 60)
        with pytest.raises(UnauthorizedException):
            await provider.verify_token(token)


class TestKeycloakProvider:
    @pytest.mark.asyncio
    async def test_selects_realm_by_issuer(self, signing_key):
        server = JwksServer([_jwk(signing_key, "k1")])
        provider = KeycloakProvider("https://sso.example.com/", ["main", "partners"], http_client=server.client())

        token = _token(signing_key, "k1", iss="https://sso.example.com/realms/partners")
        claims = await provider.verify_token(token)

        assert claims["sub"] == "user-1"
        assert server.requests == ["https://sso.example.com/realms/partners/protocol/openid-connect/certs"]

    @pytest.mark.asyncio
    async def test_unknown_realm(self, signing_key):
        provider = KeycloakProvider("https://sso.example.com", ["main"], http_client=JwksServer([]).client())
        token = _token(signing_key, "k1", iss="https://sso.example.com/realms/unknown")

        with pytest.raises(UnauthorizedException) as exc_info:
            await provider.verify_token(token)
        assert exc_info.value.message == "No realm found"

    @pytest.mark.asyncio
    async def test_missing_issuer(self, signing_key):
        provider = KeycloakProvider("https://sso.example.com", ["main"], http_client=JwksServer([]).client())

        with pytest.raises(UnauthorizedException) as exc_info:
            await provider.verify_token(_token(signing_key, "k1"))
        assert exc_info.value.message == "No issuer found"


class TestRemoteJWKSet:
    @pytest.mark.asyncio
    async def test_keys_are_cached(self, signing_key):
        server = JwksServer([_jwk(signing_key, "k1")])
        jwks = RemoteJWKSet("https://idp.example.com/jwks", http_client=server.client())

        await jwks.get_signing_key("k1")
        await jwks.get_signing_key("k1")

        assert len(server.requests) == 1

    @pytest.mark.asyncio
    async def test_unknown_kid_refetches_after_cooldown(self, signing_key):
        rotated = _rsa_key()
        server = JwksServer([_jwk(signing_key, "k1")])
        jwks = RemoteJWKSet("https://idp.example.com/jwks", cooldown=0, http_client=server.client())

        await jwks.get_signing_key("k1")
        server.keys.append(_jwk(rotated, "k2"))
        key = await jwks.get_signing_key("k2")

        assert key.key_id == "k2"
        assert len(server.requests) == 2

    @pytest.mark.asyncio
    async def test_unknown_kid_within_cooldown_fails(self, signing_key):
        server = JwksServer([_jwk(signing_key, "k1")])
        jwks = RemoteJWKSet("https://idp.example.com/jwks", cooldown=60, http_client=server.client())

        await jwks.get_signing_key("k1")
        with pytest.raises(UnauthorizedException) as exc_info:
            await jwks.get_signing_key("missing")

        assert exc_info.value.code == "INVALID_TOKEN"
        assert len(server.requests) == 1

    @pytest.mark.asyncio
    async def test_fetch_failure_is_unauthorized(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
        jwks = RemoteJWKSet("https://idp.example.com/jwks", http_client=client)

        with pytest.raises(UnauthorizedException) as exc_info:
            await jwks.get_signing_key("k1")
        assert exc_info.value.code == "INVALID_TOKEN"


class TestBuildAuthProvider:
    def test_no_provider_configured(self):
        assert build_auth_provider(Settings(auth_provider="")) is None

    def test_logto_provider(self):
        provider = build_auth_provider(Settings(auth_provider="logto", logto_endpoint="https://auth.example.com/"))
        assert isinstance(provider, LogtoProvider)
        assert provider.issuer == "https://auth.example.com/oidc"
        assert provider.jwks.url == "https://auth.example.com/oidc/jwks"

    def test_unsupported_provider_rejected(self):
        with pytest.raises(ValueError):
            Settings(auth_provider="okta")

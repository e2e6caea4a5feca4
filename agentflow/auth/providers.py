"""JWT verification against identity providers' remote JWKS."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import httpx
import jwt

from agentflow.auth.jwks import RemoteJWKSet
from agentflow.auth.types import ContextData
from agentflow.config import Settings
from agentflow.core.exceptions import AppException, UnauthorizedException
from agentflow.core.logging import get_logger

logger = get_logger(__name__)


class AuthProvider(ABC):
    """Verifies a bearer token and returns its claims."""

    algorithms: List[str] = ["RS256"]

    def __init__(self, cache_ttl: float = 600, cooldown: float = 30, timeout: float = 10,
                 http_client: Optional[httpx.AsyncClient] = None):
        self._jwks_options = {
            "cache_ttl": cache_ttl,
            "cooldown": cooldown,
            "timeout": timeout,
            "http_client": http_client,
        }

    def _jwks(self, url: str) -> RemoteJWKSet:
        return RemoteJWKSet(url, **self._jwks_options)

    @abstractmethod
    async def verify_token(self, token: str) -> ContextData:
        ...

    async def _verify(
        self,
        token: str,
        jwks: RemoteJWKSet,
        issuer: str,
        audience: Optional[str] = None,
    ) -> ContextData:
        try:
            header = jwt.get_unverified_header(token)
            signing_key = await jwks.get_signing_key(header.get("kid"))
            return jwt.decode(
                token,
                signing_key.key,
                algorithms=self.algorithms,
                issuer=issuer,
                audience=audience or None,
                options={"verify_aud": bool(audience)},
            )
        except AppException:
            raise
        except jwt.PyJWTError as exc:
            raise UnauthorizedException("UNAUTHORIZED", str(exc)) from exc


class KeycloakProvider(AuthProvider):
    """Keycloak with one or more realms, selected by the token's issuer."""

    def __init__(self, url: str, realms: List[str], **kwargs):
        super().__init__(**kwargs)
        self.url = url.rstrip("/")
        self.realms: Dict[str, RemoteJWKSet] = {}
        for realm in realms:
            issuer = f"{self.url}/realms/{realm}"
            self.realms[issuer] = self._jwks(f"{issuer}/protocol/openid-connect/certs")

    async def verify_token(self, token: str) -> ContextData:
        try:
            issuer = jwt.decode(token, options={"verify_signature": False}).get("iss")
        except jwt.PyJWTError as exc:
            raise UnauthorizedException("UNAUTHORIZED", str(exc)) from exc
        if not issuer:
            raise UnauthorizedException("UNAUTHORIZED", "No issuer found")
        jwks = self.realms.get(issuer)
        if jwks is None:
            raise UnauthorizedException("UNAUTHORIZED", "No realm found")
        return await self._verify(token, jwks, issuer)


class Auth0Provider(AuthProvider):
    def __init__(self, domain: str, audience: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        domain = domain.removeprefix("https://").rstrip("/")
        self.issuer = f"https://{domain}/"
        self.audience = audience
        self.jwks = self._jwks(f"https://{domain}/.well-known/jwks.json")

    async def verify_token(self, token: str) -> ContextData:
        return await self._verify(token, self.jwks, self.issuer, self.audience)


class LogtoProvider(AuthProvider):
    algorithms = ["ES384", "RS256"]

    def __init__(self, endpoint: str, audience: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        endpoint = endpoint.rstrip("/")
        self.issuer = f"{endpoint}/oidc"
        self.audience = audience
        self.jwks = self._jwks(f"{endpoint}/oidc/jwks")

    async def verify_token(self, token: str) -> ContextData:
        return await self._verify(token, self.jwks, self.issuer, self.audience)


def build_auth_provider(
    settings: Settings, http_client: Optional[httpx.AsyncClient] = None
) -> Optional[AuthProvider]:
    """Create the configured provider, or None when token auth is disabled."""
    options = {
        "cache_ttl": settings.jwks_cache_ttl_seconds,
        "cooldown": settings.jwks_cooldown_seconds,
        "timeout": settings.jwks_timeout_seconds,
        "http_client": http_client,
    }
    if settings.auth_provider == "keycloak":
        provider = KeycloakProvider(settings.keycloak_url, settings.keycloak_realms_list, **options)
    elif settings.auth_provider == "auth0":
        provider = Auth0Provider(settings.auth0_domain, settings.auth0_audience, **options)
    elif settings.auth_provider == "logto":
        provider = LogtoProvider(settings.logto_endpoint, settings.logto_audience, **options)
    else:
        return None
    logger.info("Auth provider configured", data={"provider": settings.auth_provider})
    return provider

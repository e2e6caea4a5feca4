"""Remote JSON Web Key Set with TTL caching."""

import asyncio
import time
from typing import List, Optional

import httpx
import jwt
from jwt import PyJWK, PyJWKSet

from agentflow.core.exceptions import UnauthorizedException
from agentflow.core.logging import get_logger

logger = get_logger(__name__)


class RemoteJWKSet:
    """Fetches signing keys from a JWKS URL.

    Keys are cached for ``cache_ttl`` seconds. A token signed with an
    unknown ``kid`` forces a refetch, at most once per ``cooldown`` seconds.
    """

    def __init__(
        self,
        url: str,
        cache_ttl: float = 600,
        cooldown: float = 30,
        timeout: float = 10,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.cache_ttl = cache_ttl
        self.cooldown = cooldown
        self.timeout = timeout
        self._http_client = http_client
        self._keys: List[PyJWK] = []
        self._fetched_at: Optional[float] = None
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        return self._fetched_at is not None and time.monotonic() - self._fetched_at < self.cache_ttl

    def _in_cooldown(self) -> bool:
        return self._fetched_at is not None and time.monotonic() - self._fetched_at < self.cooldown

    async def _download(self) -> dict:
        if self._http_client is not None:
            response = await self._http_client.get(self.url)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.url)
        response.raise_for_status()
        return response.json()

    async def _refresh(self) -> None:
        try:
            data = await self._download()
            keys = PyJWKSet.from_dict(data).keys
        except (httpx.HTTPError, ValueError, jwt.PyJWTError) as exc:
            logger.warning("Failed to fetch JWKS", data={"url": self.url, "error": str(exc)})
            raise UnauthorizedException("INVALID_TOKEN", f"Unable to fetch signing keys: {exc}") from exc
        self._keys = keys
        self._fetched_at = time.monotonic()

    @staticmethod
    def _find(keys: List[PyJWK], kid: Optional[str]) -> Optional[PyJWK]:
        if kid is None:
            return keys[0] if len(keys) == 1 else None
        return next((key for key in keys if key.key_id == kid), None)

    async def get_signing_key(self, kid: Optional[str]) -> PyJWK:
        async with self._lock:
            if not self._is_fresh():
                await self._refresh()
            key = self._find(self._keys, kid)
            if key is None and not self._in_cooldown():
                await self._refresh()
                key = self._find(self._keys, kid)
        if key is None:
            raise UnauthorizedException("INVALID_TOKEN", "No matching key found in JWKS")
        return key

"""JWKS (JSON Web Key Set) service for Supabase JWT verification.

Fetches and caches the project's public keys used to verify asymmetrically
signed access tokens.
"""

import asyncio
import time
from typing import Dict, Optional

import aiohttp
from pydantic import BaseModel

from synapse_legal.core.exceptions import DependencyError
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)


class JWKKey(BaseModel):
    """JSON Web Key model, RSA or EC."""

    kid: str
    kty: str
    alg: Optional[str] = None
    use: Optional[str] = None

    # RSA
    n: Optional[str] = None
    e: Optional[str] = None

    # EC
    crv: Optional[str] = None
    x: Optional[str] = None
    y: Optional[str] = None


class JWKSResponse(BaseModel):
    keys: list[JWKKey]


class JWKSService:
    """Fetches Supabase JWKS keys and keeps them in memory for ``cache_ttl`` seconds."""

    def __init__(self, supabase_url: str, cache_ttl: int = 3600, timeout: int = 30):
        """Initialize JWKS service.

        Args:
            supabase_url: Supabase project URL
            cache_ttl: Cache time-to-live in seconds
            timeout: HTTP request timeout in seconds
        """
        self.supabase_url = supabase_url.rstrip("/")
        self.jwks_url = f"{self.supabase_url}/auth/v1/.well-known/jwks.json"
        self.cache_ttl = cache_ttl
        self.timeout = timeout

        self._keys_cache: Optional[Dict[str, JWKKey]] = None
        self._cache_timestamp: Optional[float] = None
        self._lock = asyncio.Lock()

    async def get_keys(self) -> Dict[str, JWKKey]:
        """Get JWKS keys, using the cache while it is fresh.

        Returns:
            Dictionary mapping key IDs to JWK keys

        Raises:
            DependencyError: If keys cannot be fetched
        """
        async with self._lock:
            if self._is_cache_valid():
                return dict(self._keys_cache)

            LOGGER.info("Fetching JWKS keys from Supabase", extra={"jwks_url": self.jwks_url})
            keys = await self._fetch_keys()
            self._keys_cache = dict(keys)
            self._cache_timestamp = time.time()
            return keys

    async def get_key(self, kid: str) -> Optional[JWKKey]:
        keys = await self.get_keys()
        return keys.get(kid)

    def invalidate(self) -> None:
        """Drop cached keys so the next lookup refetches them."""
        self._keys_cache = None
        self._cache_timestamp = None

    def _is_cache_valid(self) -> bool:
        if self._keys_cache is None or self._cache_timestamp is None:
            return False
        return time.time() - self._cache_timestamp < self.cache_ttl

    async def _fetch_keys(self) -> Dict[str, JWKKey]:
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(self.jwks_url) as response:
                    if response.status != 200:
                        body = await response.text()
                        raise DependencyError(f"JWKS endpoint returned {response.status}: {body}")

                    data = await response.json()
        except aiohttp.ClientError as e:
            LOGGER.error(f"Network error fetching JWKS: {e}")
            raise DependencyError(f"Failed to fetch JWKS keys: {e}", original_error=e) from e

        try:
            jwks_response = JWKSResponse(**data)
        except Exception as e:
            LOGGER.error(f"Error parsing JWKS response: {e}")
            raise DependencyError(f"Invalid JWKS response: {e}", original_error=e) from e

        keys = {key.kid: key for key in jwks_response.keys}
        LOGGER.info(f"Fetched {len(keys)} JWKS keys")
        return keys

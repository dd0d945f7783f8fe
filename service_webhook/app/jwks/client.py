"""
JWKS client for resolving token signing keys.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional

import httpx

from shared.errors import AuthenticationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector


class JWKSClient:
    """Client that fetches a JSON Web Key Set and resolves keys by key ID.

    The key set is cached for ``cache_ttl`` seconds. A ``cache_ttl`` of 0
    fetches the key set on every lookup.
    """

    def __init__(
        self,
        jwks_url: str,
        *,
        timeout: float = 5.0,
        cache_ttl: int = 300,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.jwks_url = jwks_url
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self.metrics = metrics
        self.logger = get_logger("webhook.jwks")

        self._transport = transport
        self._keys: Optional[List[Dict[str, Any]]] = None
        self._last_refresh: float = 0.0
        self._lock = asyncio.Lock()

    async def get_key(self, kid: str) -> Dict[str, Any]:
        """Return the JWK matching ``kid``.

        Raises AuthenticationError when the key set cannot be fetched or
        does not contain the key.
        """
        await self._refresh_keys(force=False)
        key = self._find_key(kid)
        if key is not None:
            return key

        # Key might be rotated; refresh once more eagerly.
        if self.cache_ttl > 0:
            await self._refresh_keys(force=True)
            key = self._find_key(kid)
            if key is not None:
                return key

        self.logger.warning("Signing key not found", kid=kid)
        raise AuthenticationError("Signing key not found for token", details={"kid": kid})

    async def check_health(self) -> str:
        """Return 'ok' if the JWKS endpoint responds correctly, otherwise 'error'."""
        try:
            await self._refresh_keys(force=True)
            return "ok"
        except AuthenticationError as exc:
            self.logger.error("JWKS health check failed", error=exc.message, details=exc.details)
            return "error"

    def clear_cache(self) -> None:
        """Drop cached keys."""
        self._keys = None
        self._last_refresh = 0.0

    def _find_key(self, kid: str) -> Optional[Dict[str, Any]]:
        for key in self._keys or []:
            if isinstance(key, dict) and key.get("kid") == kid:
                return key
        return None

    def _is_fresh(self) -> bool:
        return (
            self.cache_ttl > 0
            and self._keys is not None
            and (time.time() - self._last_refresh) < self.cache_ttl
        )

    async def _refresh_keys(self, *, force: bool) -> None:
        """Refresh the JWKS if the cache is stale."""
        if not force and self._is_fresh():
            return

        async with self._lock:
            if not force and self._is_fresh():
                return

            self._keys = await self._fetch_keys()
            self._last_refresh = time.time()

    async def _fetch_keys(self) -> List[Dict[str, Any]]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.jwks_url)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as exc:
            self._record_refresh("timeout")
            raise AuthenticationError(
                "Signing key resolution timed out",
                details={"jwks_url": self.jwks_url, "error": str(exc)},
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            self._record_refresh("error")
            raise AuthenticationError(
                "Signing key resolution failed",
                details={"jwks_url": self.jwks_url, "error": str(exc)},
            ) from exc

        keys = payload.get("keys") if isinstance(payload, dict) else None
        if not isinstance(keys, list):
            self._record_refresh("error")
            raise AuthenticationError(
                "JWKS response missing 'keys' array",
                details={"jwks_url": self.jwks_url},
            )

        self._record_refresh("success")
        self.logger.info("JWKS refreshed", keys_count=len(keys))
        return keys

    def _record_refresh(self, status: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("jwks_refresh_total", status=status)

"""
Bearer token authentication for inbound webhook requests.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from jose import jwk, jwt
from jose.exceptions import JOSEError

from shared.errors import AuthenticationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..jwks.client import JWKSClient


BEARER_PREFIX = "Bearer "
DEFAULT_ALGORITHM = "RS256"

# Absent aud or iss claims must fail rather than skip the comparison.
DECODE_OPTIONS = {"require_aud": True, "require_iss": True}


def extract_bearer_token(headers: Mapping[str, str]) -> str:
    """Return the raw token from an ``Authorization: Bearer <token>`` header."""
    authorization = headers.get("Authorization")
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthenticationError("Missing or invalid Authorization header")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("Authorization header contained empty bearer token")
    return token


class TokenAuthenticator:
    """Authenticator that validates JWTs against a remote JWKS endpoint."""

    def __init__(
        self,
        jwks_client: JWKSClient,
        audience: str,
        issuer: str,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.jwks_client = jwks_client
        self.audience = audience
        self.issuer = issuer
        self.metrics = metrics
        self.logger = get_logger("webhook.auth")

    async def authenticate(self, headers: Mapping[str, str]) -> Dict[str, Any]:
        """Authenticate a request from its headers and return the verified claims.

        Every failure, including key resolution, surfaces as AuthenticationError.
        """
        try:
            token = extract_bearer_token(headers)
            claims = await self.verify_token(token)
        except AuthenticationError as exc:
            self.logger.error("Token verification failed", reason=exc.message)
            self._record("failure")
            raise

        self.logger.info("Token verified")
        self._record("success")
        return claims

    async def verify_token(self, token: str) -> Dict[str, Any]:
        """Validate the JWT signature and claims and return its payload."""
        try:
            header = jwt.get_unverified_header(token)
        except JOSEError as exc:
            raise AuthenticationError("Malformed token header", details={"error": str(exc)}) from exc

        kid = header.get("kid")
        if not isinstance(kid, str) or not kid:
            raise AuthenticationError("JWT header missing key id (kid)")

        key_data = await self.jwks_client.get_key(kid)
        algorithm = key_data.get("alg", DEFAULT_ALGORITHM)

        try:
            jwk.construct(key_data, algorithm)
        except (JOSEError, ValueError, TypeError, KeyError) as exc:
            raise AuthenticationError(
                "Signing key is invalid",
                details={"kid": kid, "error": str(exc)},
            ) from exc

        try:
            claims = jwt.decode(
                token,
                key_data,
                algorithms=[algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options=DECODE_OPTIONS,
            )
        except (JOSEError, ValueError, TypeError) as exc:
            raise AuthenticationError("JWT validation failed", details={"error": str(exc)}) from exc

        return claims

    def _record(self, status: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("token_validations_total", status=status)

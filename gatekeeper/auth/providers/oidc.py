"""OpenID Connect (OIDC) JWT validator.

Supports Auth0 and any OIDC-compliant issuer publishing its keys as JWKS.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx
import jwt
from pydantic import ValidationError

from gatekeeper.auth.models import (
    AuthenticationError,
    Claims,
    InvalidTokenError,
    TokenExpiredError,
)
from gatekeeper.auth.providers.base import JWTValidator

logger = logging.getLogger(__name__)


class OIDCValidator(JWTValidator):
    """Validates JWT tokens against the issuer's JWKS endpoint.

    The audience is not verified here: it is compared with the origin
    of the calling service once the claims are extracted.

    Usage:
        validator = OIDCValidator(issuer="https://example.auth0.com/")
        claims = await validator.extract_claims(request)
    """

    def __init__(
        self,
        issuer: str,
        jwks_uri: str | None = None,
        clock_skew_seconds: int = 30,
        cache_ttl_seconds: int = 300,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize OIDC validator.

        Args:
            issuer: OIDC issuer URL (e.g., https://example.auth0.com/)
            jwks_uri: JWKS URI (auto-discovered if not provided)
            clock_skew_seconds: Allowed clock skew for token validation
            cache_ttl_seconds: TTL for JWKS cache
            http_client: HTTP client used to fetch configuration and keys
        """
        self.issuer = issuer
        self.clock_skew = clock_skew_seconds
        self.cache_ttl = cache_ttl_seconds

        self._jwks_uri = jwks_uri
        self._jwks_cache: dict[str, Any] | None = None
        self._jwks_cached_at: datetime | None = None

        self._http_client = http_client or httpx.AsyncClient(timeout=10.0)

        logger.info("OIDCValidator initialized: issuer=%s", self.issuer)

    @property
    def provider_name(self) -> str:
        return "oidc"

    async def initialize(self) -> None:
        """Fetch the issuer keys ahead of the first request."""
        await self._get_jwks()

    async def _discover_jwks_uri(self) -> str:
        """Discover JWKS URI from OpenID configuration."""
        if self._jwks_uri:
            return self._jwks_uri

        config_url = f"{self.issuer.rstrip('/')}/.well-known/openid-configuration"

        try:
            response = await self._http_client.get(config_url)
            response.raise_for_status()
            config = response.json()
            self._jwks_uri = config["jwks_uri"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("Failed to discover JWKS URI: %s", e)
            raise AuthenticationError(
                f"Failed to discover OIDC configuration: {e}",
                code="oidc_discovery_failed"
            )

        logger.info("JWT keys: %s", self._jwks_uri)
        return self._jwks_uri

    async def _get_jwks(self) -> dict[str, Any]:
        """Get JWKS with caching."""
        now = datetime.now(timezone.utc)

        if (
            self._jwks_cache
            and self._jwks_cached_at
            and (now - self._jwks_cached_at).total_seconds() < self.cache_ttl
        ):
            return self._jwks_cache

        jwks_uri = await self._discover_jwks_uri()

        try:
            response = await self._http_client.get(jwks_uri)
            response.raise_for_status()
            self._jwks_cache = response.json()
            self._jwks_cached_at = now
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Failed to fetch JWKS: %s", e)
            raise AuthenticationError(
                f"Failed to fetch JWKS: {e}",
                code="jwks_fetch_failed"
            )

        logger.debug("Refreshed JWKS cache")
        return self._jwks_cache

    @staticmethod
    def _find_key(jwks: dict[str, Any], kid: str) -> Any:
        for jwk in jwks.get("keys", []):
            if jwk.get("kid") == kid:
                return jwt.algorithms.RSAAlgorithm.from_jwk(jwk)
        return None

    async def validate_token(self, token: str) -> Claims:
        """Validate JWT token and extract claims."""
        try:
            unverified_header = jwt.get_unverified_header(token)
        except jwt.DecodeError as e:
            raise InvalidTokenError(f"Failed to decode token: {e}")

        kid = unverified_header.get("kid")
        if not kid:
            raise InvalidTokenError("Token missing key ID (kid)")

        jwks = await self._get_jwks()
        key = self._find_key(jwks, kid)

        if not key:
            # Key not found, the issuer may have rotated its keys.
            self._jwks_cache = None
            key = self._find_key(await self._get_jwks(), kid)

        if not key:
            raise InvalidTokenError(f"Key ID '{kid}' not found in JWKS")

        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=["RS256"],
                issuer=self.issuer,
                leeway=self.clock_skew,
                options={"verify_aud": False},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidIssuerError:
            raise InvalidTokenError("Invalid token issuer")
        except jwt.InvalidSignatureError:
            raise InvalidTokenError("Invalid token signature")
        except jwt.DecodeError as e:
            raise InvalidTokenError(f"Failed to decode token: {e}")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Token validation failed: {e}")

        try:
            return Claims(
                subject=payload.get("sub", ""),
                audience=payload.get("aud"),
                email=payload.get("email"),
                groups=payload.get("groups", []),
            )
        except ValidationError as e:
            raise InvalidTokenError(f"Invalid token claims: {e}")

    async def close(self) -> None:
        """Close HTTP client."""
        await self._http_client.aclose()

"""Gatekeeper Authentication Package.

Verifies caller tokens and derives the principals used for
authorization.

Usage:
    from gatekeeper.auth import extract_principals, get_validator

    validator = get_validator(issuer="https://example.auth0.com/")
    claims = await validator.extract_claims(request)
    principals = extract_principals(claims, request.headers.get("Origin"))
"""

from gatekeeper.auth.identity import extract_principals
from gatekeeper.auth.models import (
    AuthenticationError,
    BadRequestError,
    Claims,
    ForbiddenError,
    InvalidTokenError,
    MissingTokenError,
    TokenExpiredError,
)
from gatekeeper.auth.providers.base import JWTValidator

__all__ = [
    "AuthenticationError",
    "BadRequestError",
    "Claims",
    "ForbiddenError",
    "InvalidTokenError",
    "JWTValidator",
    "MissingTokenError",
    "TokenExpiredError",
    "extract_principals",
    "get_validator",
]


def get_validator(issuer: str | None, jwks_uri: str | None = None) -> JWTValidator | None:
    """Get the JWT validator for an issuer, or None when no issuer is configured."""
    from gatekeeper.auth.providers.oidc import OIDCValidator

    if not issuer:
        return None
    return OIDCValidator(issuer=issuer, jwks_uri=jwks_uri)

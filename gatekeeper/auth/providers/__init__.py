"""JWT validators.

Pluggable token verification backends:
- OIDC: issuers publishing their signing keys as JWKS (Auth0, etc.)
"""

from gatekeeper.auth.providers.base import JWTValidator
from gatekeeper.auth.providers.oidc import OIDCValidator

__all__ = [
    "JWTValidator",
    "OIDCValidator",
]

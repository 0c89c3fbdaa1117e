"""Abstract base class for JWT validators.

All validators must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Any

from gatekeeper.auth.models import Claims, InvalidTokenError, MissingTokenError


class JWTValidator(ABC):
    """Extracts verified claims from incoming requests.

    Implementations:
    - OIDCValidator: JWT signed with the keys published by an OIDC issuer
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the validator identifier (e.g., 'oidc')."""
        pass

    @abstractmethod
    async def validate_token(self, token: str) -> Claims:
        """Validate a token and extract claims.

        Raises:
            InvalidTokenError: If token is invalid
            TokenExpiredError: If token is expired
        """
        pass

    async def initialize(self) -> None:
        """Prepare the validator (fetch keys, etc.)."""
        return None

    async def close(self) -> None:
        """Release resources held by the validator."""
        return None

    async def extract_claims(self, request: Any) -> Claims:
        """Validate the Bearer token of a request and return its claims.

        Args:
            request: The incoming HTTP request (FastAPI Request object)

        Raises:
            MissingTokenError: If no token is provided
            InvalidTokenError: If the token is invalid
        """
        auth_header = request.headers.get("Authorization", "")

        if not auth_header:
            raise MissingTokenError()

        if not auth_header.startswith("Bearer "):
            raise InvalidTokenError("Invalid Authorization header format")

        token = auth_header[7:]

        if not token:
            raise MissingTokenError()

        return await self.validate_token(token)

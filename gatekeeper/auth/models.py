"""Authentication data models.

Verified token claims and the errors raised at the authentication
boundary.
"""

from pydantic import BaseModel, Field, field_validator


class Claims(BaseModel):
    """The set of information extracted from a verified JWT payload.

    Standard claims (RFC 7519):
    - sub: Subject (user identifier)
    - aud: Audience (one or several services)

    Identity claims:
    - email: Main email of the user
    - groups: Group memberships
    """

    subject: str = Field(default="", description="Subject - unique user identifier")
    audience: list[str] = Field(
        default_factory=list,
        description="Audiences the token was issued for"
    )
    email: str | None = Field(default=None, description="User's email")
    groups: list[str] = Field(default_factory=list, description="Group memberships")

    @field_validator("audience", mode="before")
    @classmethod
    def validate_audience(cls, value):
        # A single audience may be sent as a plain string.
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("groups", mode="before")
    @classmethod
    def validate_groups(cls, value):
        return value or []

    def has_audience(self, audience: str) -> bool:
        return audience in self.audience


class AuthenticationError(Exception):
    """Raised when authentication fails."""

    status_code = 401

    def __init__(self, message: str, code: str = "auth_failed"):
        self.message = message
        self.code = code
        super().__init__(message)


class TokenExpiredError(AuthenticationError):
    """Raised when a token has expired."""

    def __init__(self):
        super().__init__("Token has expired", "token_expired")


class InvalidTokenError(AuthenticationError):
    """Raised when a token is invalid."""

    def __init__(self, reason: str = "Token validation failed"):
        super().__init__(reason, "invalid_token")


class MissingTokenError(AuthenticationError):
    """Raised when no token is provided."""

    def __init__(self):
        super().__init__("No authentication token provided", "missing_token")


class BadRequestError(AuthenticationError):
    """Raised when the caller did not declare its origin."""

    status_code = 400

    def __init__(self, message: str = "Missing `Origin` request header"):
        super().__init__(message, "missing_origin")


class ForbiddenError(AuthenticationError):
    """Raised when the origin is not an audience of the token."""

    status_code = 403

    def __init__(self, message: str = "Invalid audience claim"):
        super().__init__(message, "invalid_audience")

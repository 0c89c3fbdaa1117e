"""Policy loading errors.

Any of these aborts the whole reload; the previously published
policies keep serving.
"""


class LoadError(Exception):
    """Raised when policy configuration cannot be loaded."""

    def __init__(self, message: str, source: str | None = None):
        self.message = message
        self.source = source
        super().__init__(message)


class EmptySourceError(LoadError):
    """Raised when a source is empty or contains no configuration file."""

    def __init__(self, source: str):
        super().__init__(f"empty source {source!r}", source)


class InvalidConfigurationError(LoadError):
    """Raised when a source does not describe a valid configuration."""


class DuplicateAudienceError(LoadError):
    """Raised when two sources declare the same audience."""

    def __init__(self, audience: str, source: str | None = None):
        self.audience = audience
        super().__init__(
            f"duplicated audience {audience!r} (source {source!r})", source
        )


class DuplicatePolicyError(LoadError):
    """Raised when a policy ID appears twice within one audience."""

    def __init__(self, policy_id: str, source: str | None = None):
        self.policy_id = policy_id
        super().__init__(f"duplicated policy ID {policy_id!r}", source)


class ConditionError(LoadError):
    """Raised when a condition descriptor is malformed."""

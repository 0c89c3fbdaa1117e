"""Gatekeeper Authorization Package.

Policy-based access control scoped per audience, with deny-override
and default-deny semantics.

Usage:
    from gatekeeper.authz import AudienceRegistry, AuthzRequest, Doorman

    registry = AudienceRegistry(["policies.yaml"])
    registry.load()
    doorman = Doorman(registry)

    request = AuthzRequest(
        principals=["userid:42"],
        resource="doc:1",
        action="read",
    )
    if doorman.is_allowed("https://service.example.com", request):
        # Allowed
        pass
"""

from gatekeeper.authz.errors import (
    ConditionError,
    DuplicateAudienceError,
    DuplicatePolicyError,
    EmptySourceError,
    InvalidConfigurationError,
    LoadError,
)
from gatekeeper.authz.models import (
    AuthzRequest,
    Configuration,
    Policy,
    PolicyEffect,
)
from gatekeeper.authz.engine import Doorman
from gatekeeper.authz.registry import AudienceConfig, AudienceRegistry
from gatekeeper.authz.store import PolicyStore
from gatekeeper.authz.tags import TagExpander

__all__ = [
    "AudienceConfig",
    "AudienceRegistry",
    "AuthzRequest",
    "ConditionError",
    "Configuration",
    "Doorman",
    "DuplicateAudienceError",
    "DuplicatePolicyError",
    "EmptySourceError",
    "InvalidConfigurationError",
    "LoadError",
    "Policy",
    "PolicyEffect",
    "PolicyStore",
    "TagExpander",
]

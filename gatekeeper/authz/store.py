"""In-memory policy store.

Policies are compiled when inserted so that evaluation never parses
patterns or condition descriptors.
"""

import logging
from dataclasses import dataclass
from typing import Iterator

from gatekeeper.authz.conditions import (
    Condition,
    Context,
    compile_condition,
    conditions_fulfilled,
)
from gatekeeper.authz.errors import DuplicatePolicyError
from gatekeeper.authz.models import Policy, PolicyEffect
from gatekeeper.authz.patterns import Pattern, compile_patterns, matches_any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledPolicy:
    """A policy with its patterns and conditions ready for matching."""

    policy: Policy
    subjects: tuple[Pattern, ...]
    resources: tuple[Pattern, ...]
    actions: tuple[Pattern, ...]
    conditions: dict[str, Condition]

    @classmethod
    def compile(cls, policy: Policy) -> "CompiledPolicy":
        return cls(
            policy=policy,
            subjects=compile_patterns(policy.subjects),
            resources=compile_patterns(policy.resources),
            actions=compile_patterns(policy.actions),
            conditions={
                key: compile_condition(descriptor)
                for key, descriptor in policy.conditions.items()
            },
        )

    @property
    def id(self) -> str:
        return self.policy.id

    @property
    def effect(self) -> PolicyEffect:
        return self.policy.effect

    def matches(self, subject: str, resource: str, action: str, context: Context) -> bool:
        """Check if the policy applies to a single-subject request."""
        return (
            matches_any(self.actions, action)
            and matches_any(self.subjects, subject)
            and matches_any(self.resources, resource)
            and conditions_fulfilled(self.conditions, context, subject)
        )


class PolicyStore:
    """Policies of one audience, keyed by ID in insertion order."""

    def __init__(self):
        self._policies: dict[str, CompiledPolicy] = {}

    def create(self, policy: Policy) -> CompiledPolicy:
        """Compile and insert a policy.

        Raises:
            DuplicatePolicyError: If a policy with the same ID exists
            ConditionError: If a condition descriptor is malformed
        """
        if policy.id in self._policies:
            raise DuplicatePolicyError(policy.id)
        compiled = CompiledPolicy.compile(policy)
        self._policies[policy.id] = compiled
        logger.info("Load policy %s: %s", policy.id, policy.description)
        return compiled

    def get(self, policy_id: str) -> CompiledPolicy | None:
        return self._policies.get(policy_id)

    def __len__(self) -> int:
        return len(self._policies)

    def __iter__(self) -> Iterator[CompiledPolicy]:
        return iter(self._policies.values())

    def __contains__(self, policy_id: str) -> bool:
        return policy_id in self._policies

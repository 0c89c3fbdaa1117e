"""Authorization data models.

Defines policies, per-audience configurations and authorization requests.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gatekeeper.authz.conditions import ConditionDescriptor, Context
from gatekeeper.authz.principals import Principals


class PolicyEffect(str, Enum):
    """Effect of an authorization policy."""

    ALLOW = "allow"
    DENY = "deny"


class Policy(BaseModel):
    """A rule mapping subjects, resources and actions to an effect.

    Subjects, resources and actions are patterns: exact strings,
    ``*`` or ``<regex>`` segments (see ``gatekeeper.authz.patterns``).
    Conditions are keyed by the request context entry they inspect;
    a policy without conditions always applies.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique policy identifier within an audience")
    description: str = Field(default="", description="Policy description")
    subjects: list[str] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    effect: PolicyEffect = Field(description="Allow or deny")
    conditions: dict[str, ConditionDescriptor] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, value):
        # YAML files often carry numeric IDs.
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str) or not value:
            raise ValueError("policy ID must be a non-empty string")
        return value

    @field_validator("conditions", mode="before")
    @classmethod
    def validate_conditions(cls, value):
        return value or {}


class Configuration(BaseModel):
    """The content of one policies file.

    Each configuration owns exactly one audience, its tags and its policies.
    """

    model_config = ConfigDict(frozen=True)

    audience: str = Field(default="", description="Audience (service) identifier")
    tags: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Tag name to member principals"
    )
    policies: list[Policy] = Field(default_factory=list)

    @field_validator("tags", "policies", mode="before")
    @classmethod
    def validate_empty(cls, value, info):
        if value is None:
            return {} if info.field_name == "tags" else []
        return value


class AuthzRequest(BaseModel):
    """A single authorization question."""

    principals: Principals = Field(default_factory=list)
    resource: str = Field(default="")
    action: str = Field(default="")
    context: Context = Field(default_factory=dict)

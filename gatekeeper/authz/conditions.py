"""Policy conditions.

A condition is declared in policy files under a context key:

    conditions:
      remoteIP:
        type: CIDRCondition
        options:
          cidr: 192.168.0.0/16

At evaluation time the value stored under that key in the request
context is checked by the condition. A missing key fails the condition.
"""

import ipaddress
import re
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from gatekeeper.authz.errors import ConditionError

# Values a request context may carry.
ContextValue = str | int | float | bool | list[str] | None
Context = dict[str, ContextValue]


class ConditionDescriptor(BaseModel):
    """A condition as declared in a policy file."""

    type: str = Field(description="Condition type name")
    options: dict[str, Any] = Field(default_factory=dict)


class Condition(ABC):
    """Compiled condition."""

    name: str = ""

    @abstractmethod
    def fulfills(self, value: Any, subject: str) -> bool:
        """Check the context value against this condition."""

    @classmethod
    def from_options(cls, options: dict[str, Any]) -> "Condition":
        return cls()


def _required_str(name: str, options: dict[str, Any], key: str) -> str:
    value = options.get(key)
    if not isinstance(value, str) or not value:
        raise ConditionError(f"{name} requires a non-empty string option {key!r}")
    return value


class StringEqualCondition(Condition):
    name = "StringEqualCondition"

    def __init__(self, equals: str):
        self.equals = equals

    @classmethod
    def from_options(cls, options: dict[str, Any]) -> "StringEqualCondition":
        if not isinstance(options.get("equals"), str):
            raise ConditionError(f"{cls.name} requires a string option 'equals'")
        return cls(options["equals"])

    def fulfills(self, value: Any, subject: str) -> bool:
        return isinstance(value, str) and value == self.equals


class StringMatchCondition(Condition):
    name = "StringMatchCondition"

    def __init__(self, matches: str):
        try:
            self.regex = re.compile(matches)
        except re.error as e:
            raise ConditionError(f"{self.name}: invalid regex {matches!r}: {e}")

    @classmethod
    def from_options(cls, options: dict[str, Any]) -> "StringMatchCondition":
        return cls(_required_str(cls.name, options, "matches"))

    def fulfills(self, value: Any, subject: str) -> bool:
        return isinstance(value, str) and self.regex.fullmatch(value) is not None


class CIDRCondition(Condition):
    name = "CIDRCondition"

    def __init__(self, cidr: str):
        try:
            self.network = ipaddress.ip_network(cidr, strict=False)
        except ValueError as e:
            raise ConditionError(f"{self.name}: invalid network {cidr!r}: {e}")

    @classmethod
    def from_options(cls, options: dict[str, Any]) -> "CIDRCondition":
        return cls(_required_str(cls.name, options, "cidr"))

    def fulfills(self, value: Any, subject: str) -> bool:
        if not isinstance(value, str):
            return False
        try:
            address = ipaddress.ip_address(value)
        except ValueError:
            return False
        return address in self.network


class ListContainsCondition(Condition):
    name = "ListContainsCondition"

    def __init__(self, value: str):
        self.value = value

    @classmethod
    def from_options(cls, options: dict[str, Any]) -> "ListContainsCondition":
        return cls(_required_str(cls.name, options, "value"))

    def fulfills(self, value: Any, subject: str) -> bool:
        return isinstance(value, list) and self.value in value


class EqualsSubjectCondition(Condition):
    """Holds when the context value is the principal being evaluated."""

    name = "EqualsSubjectCondition"

    def fulfills(self, value: Any, subject: str) -> bool:
        return isinstance(value, str) and value == subject


CONDITION_TYPES: dict[str, type[Condition]] = {
    cls.name: cls
    for cls in (
        StringEqualCondition,
        StringMatchCondition,
        CIDRCondition,
        ListContainsCondition,
        EqualsSubjectCondition,
    )
}


def compile_condition(descriptor: ConditionDescriptor) -> Condition:
    """Build a condition from its descriptor.

    Raises:
        ConditionError: If the type is unknown or options are invalid
    """
    condition_cls = CONDITION_TYPES.get(descriptor.type)
    if condition_cls is None:
        raise ConditionError(f"unknown condition type {descriptor.type!r}")
    return condition_cls.from_options(descriptor.options)


def conditions_fulfilled(
    conditions: dict[str, Condition], context: Context, subject: str
) -> bool:
    """Check that every condition holds against the request context."""
    for key, condition in conditions.items():
        if key not in context:
            return False
        if not condition.fulfills(context[key], subject):
            return False
    return True

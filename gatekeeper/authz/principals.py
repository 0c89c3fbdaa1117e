"""Principal identifiers.

A principal is a namespaced identity string a caller may assert:

- userid:<id>
- email:<address>
- group:<name>
- tag:<name>

Principals are compared by exact string equality.
"""

from enum import Enum

# An ordered list of principals; duplicates are allowed.
Principals = list[str]


class PrincipalKind(str, Enum):
    """Namespaces of principal identifiers."""

    USERID = "userid"
    EMAIL = "email"
    GROUP = "group"
    TAG = "tag"


def make_principal(kind: PrincipalKind, value: str) -> str:
    """Build a prefixed principal identifier."""
    return f"{kind.value}:{value}"


def userid(subject: str) -> str:
    return make_principal(PrincipalKind.USERID, subject)


def email(address: str) -> str:
    return make_principal(PrincipalKind.EMAIL, address)


def group(name: str) -> str:
    return make_principal(PrincipalKind.GROUP, name)


def tag(name: str) -> str:
    return make_principal(PrincipalKind.TAG, name)

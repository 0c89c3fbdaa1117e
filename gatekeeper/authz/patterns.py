"""Subject, resource and action patterns.

Three forms are supported:

- ``*`` matches any value
- a string containing ``<...>`` segments is a regular expression; text
  outside the brackets is literal, text inside is a regex, and the whole
  value must match (e.g. ``article:<[0-9]+>``)
- anything else is compared by exact equality

Patterns are compiled once, when policies are loaded.
"""

import re
from dataclasses import dataclass

from gatekeeper.authz.errors import InvalidConfigurationError

WILDCARD = "*"
REGEX_START = "<"
REGEX_END = ">"


@dataclass(frozen=True)
class Pattern:
    """Base class for compiled patterns."""

    raw: str

    def matches(self, value: str) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class LiteralPattern(Pattern):
    def matches(self, value: str) -> bool:
        return value == self.raw


@dataclass(frozen=True)
class WildcardPattern(Pattern):
    def matches(self, value: str) -> bool:
        return True


@dataclass(frozen=True)
class RegexPattern(Pattern):
    regex: re.Pattern

    def matches(self, value: str) -> bool:
        return self.regex.fullmatch(value) is not None


def _compile_delimited(raw: str) -> re.Pattern:
    """Turn ``prefix<regex>suffix`` into an anchored regular expression."""
    parts = []
    position = 0
    while position < len(raw):
        start = raw.find(REGEX_START, position)
        if start == -1:
            parts.append(re.escape(raw[position:]))
            break
        end = raw.find(REGEX_END, start + 1)
        if end == -1:
            raise InvalidConfigurationError(f"unbalanced delimiters in pattern {raw!r}")
        # Nested brackets are allowed inside the regex part.
        depth = raw.count(REGEX_START, start + 1, end)
        while depth:
            next_end = raw.find(REGEX_END, end + 1)
            if next_end == -1:
                raise InvalidConfigurationError(
                    f"unbalanced delimiters in pattern {raw!r}"
                )
            depth += raw.count(REGEX_START, end + 1, next_end) - 1
            end = next_end
        parts.append(re.escape(raw[position:start]))
        parts.append(f"(?:{raw[start + 1:end]})")
        position = end + 1

    try:
        return re.compile("".join(parts))
    except re.error as e:
        raise InvalidConfigurationError(f"invalid regex in pattern {raw!r}: {e}")


def compile_pattern(raw: str) -> Pattern:
    """Compile a pattern string into its matcher."""
    if raw == WILDCARD:
        return WildcardPattern(raw)
    if REGEX_START in raw:
        return RegexPattern(raw, _compile_delimited(raw))
    return LiteralPattern(raw)


def compile_patterns(raws: list[str]) -> tuple[Pattern, ...]:
    return tuple(compile_pattern(raw) for raw in raws)


def matches_any(patterns: tuple[Pattern, ...], value: str) -> bool:
    """Check if any pattern matches the value."""
    return any(pattern.matches(value) for pattern in patterns)

"""Tag expansion.

Tags group principals under a synthetic ``tag:<name>`` principal, so
policies can target a team without listing every member.
"""

from gatekeeper.authz.principals import Principals, tag


class TagExpander:
    """Expands principals with the tags they belong to."""

    def __init__(self, tags: dict[str, list[str]] | None = None):
        # Declaration order of tags and members is significant.
        self.tags: dict[str, tuple[str, ...]] = {
            name: tuple(members) for name, members in (tags or {}).items()
        }

    def expand(self, principals: Principals) -> Principals:
        """Return the principals followed by their matching tags.

        Tags are appended in declaration order, once per matching
        member; repeated tags are kept.
        """
        result = list(principals)
        for name, members in self.tags.items():
            for member in members:
                for principal in principals:
                    if principal == member:
                        result.append(tag(name))
        return result

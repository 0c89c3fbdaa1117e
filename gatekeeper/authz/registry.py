"""Audience registry.

Holds one policy store and one tag expander per audience. The live
mapping is an immutable snapshot: a reload builds a complete new
snapshot and publishes it with a single reference assignment, so
readers never see a partially loaded set of audiences.
"""

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from gatekeeper.authz.errors import DuplicateAudienceError, LoadError
from gatekeeper.authz.loader import load_configuration, resolve_sources
from gatekeeper.authz.models import Configuration
from gatekeeper.authz.store import PolicyStore
from gatekeeper.authz.tags import TagExpander

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudienceConfig:
    """Everything needed to decide requests for one audience."""

    audience: str
    store: PolicyStore
    tags: TagExpander
    source: str | None = None

    @classmethod
    def compile(cls, config: Configuration, source: str | None = None) -> "AudienceConfig":
        """Compile a parsed configuration.

        Raises:
            LoadError: If a policy is duplicated or malformed
        """
        store = PolicyStore()
        for policy in config.policies:
            try:
                store.create(policy)
            except LoadError as e:
                e.source = e.source or source
                raise
        return cls(
            audience=config.audience,
            store=store,
            tags=TagExpander(config.tags),
            source=source,
        )


def build_snapshot(
    configurations: list[tuple[Configuration, str | None]],
) -> Mapping[str, AudienceConfig]:
    """Compile configurations into a read-only audience mapping.

    Raises:
        DuplicateAudienceError: If two configurations share an audience
        LoadError: If any configuration fails to compile
    """
    audiences: dict[str, AudienceConfig] = {}
    for config, source in configurations:
        compiled = AudienceConfig.compile(config, source)
        if compiled.audience in audiences:
            raise DuplicateAudienceError(compiled.audience, source)
        audiences[compiled.audience] = compiled
    return MappingProxyType(audiences)


class AudienceRegistry:
    """Live, reloadable set of audiences.

    Usage:
        registry = AudienceRegistry(["policies.yaml", "policies.d/"])
        registry.load()

        audience = registry.lookup("https://service.example.com")
    """

    def __init__(self, sources: list[str] | None = None):
        self.sources = list(sources or [])
        self._snapshot: Mapping[str, AudienceConfig] = MappingProxyType({})
        self._reload_lock = threading.RLock()

    def load(self, sources: list[str] | None = None) -> None:
        """(Re)load every source and publish them together.

        Either all sources load and replace the current audiences, or
        the current audiences are left untouched.

        Raises:
            LoadError: If any source fails to load
        """
        sources = self.sources if sources is None else list(sources)
        with self._reload_lock:
            configurations = []
            paths = []
            for path in resolve_sources(sources):
                logger.info("Load configuration %s", path)
                configurations.append(load_configuration(path))
                paths.append(str(path))
            self.publish(configurations, paths)
            self.sources = sources

    def reload(self) -> None:
        """Reload the configured sources."""
        self.load()

    def publish(
        self,
        configurations: list[Configuration],
        sources: list[str] | None = None,
    ) -> None:
        """Replace the audiences with already parsed configurations.

        Raises:
            LoadError: If any configuration fails to compile
        """
        if sources is None:
            sources = [None] * len(configurations)
        with self._reload_lock:
            snapshot = build_snapshot(list(zip(configurations, sources)))
            self._snapshot = snapshot

        logger.info(
            "Loaded %d audience(s): %s", len(snapshot), ", ".join(snapshot)
        )

    def lookup(self, audience: str) -> AudienceConfig | None:
        return self._snapshot.get(audience)

    def audiences(self) -> list[str]:
        return list(self._snapshot)

    @property
    def snapshot(self) -> Mapping[str, AudienceConfig]:
        return self._snapshot

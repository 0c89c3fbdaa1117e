"""Policy file loading.

A policies file is YAML:

    audience: https://service.example.com
    tags:
      admins:
        - userid:maria
    policies:
      - id: "1"
        description: Admins can do anything
        subjects: ["tag:admins"]
        resources: ["*"]
        actions: ["*"]
        effect: allow

A source is either such a file, or a directory whose ``*.yaml`` and
``*.yml`` files are each loaded as a separate configuration.
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from gatekeeper.authz.errors import (
    EmptySourceError,
    InvalidConfigurationError,
    LoadError,
)
from gatekeeper.authz.models import Configuration

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def resolve_sources(sources: list[str]) -> list[Path]:
    """Expand directory sources into the YAML files they contain.

    Raises:
        LoadError: If a source does not exist
        EmptySourceError: If a directory holds no YAML file
    """
    files: list[Path] = []
    for source in sources:
        path = Path(source)
        if path.is_dir():
            found = sorted(
                p for p in path.iterdir()
                if p.is_file() and p.suffix in YAML_SUFFIXES
            )
            if not found:
                raise EmptySourceError(source)
            files.extend(found)
        elif path.is_file():
            files.append(path)
        else:
            raise LoadError(f"cannot read source {source!r}", source)
    return files


def parse_configuration(content: str, source: str) -> Configuration:
    """Parse and validate the content of a policies file."""
    if not content.strip():
        raise EmptySourceError(source)

    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise InvalidConfigurationError(f"invalid YAML in {source!r}: {e}", source)

    if not isinstance(raw, dict):
        raise InvalidConfigurationError(
            f"expected a mapping at the top of {source!r}", source
        )

    try:
        config = Configuration.model_validate(raw)
    except ValidationError as e:
        raise InvalidConfigurationError(
            f"invalid configuration in {source!r}: {e}", source
        )

    if not config.audience:
        raise InvalidConfigurationError(f"empty audience in {source!r}", source)

    if not config.policies:
        logger.warning("no policies found in %s", source)

    return config


def load_configuration(path: str | Path) -> Configuration:
    """Read one policies file.

    Raises:
        LoadError: If the file cannot be read or is invalid
    """
    source = str(path)
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(f"cannot read source {source!r}: {e}", source)
    return parse_configuration(content, source)

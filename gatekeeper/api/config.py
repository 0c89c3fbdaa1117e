"""API configuration via pydantic-settings."""

from __future__ import annotations

from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="GATEKEEPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    log_level: str = "INFO"

    # Policies files or directories (space or comma separated in env)
    policies: Annotated[list[str], NoDecode] = ["policies.yaml"]

    # === JWT SETTINGS ===
    # Without an issuer, principals are read from the request body.
    jwt_issuer: str | None = None
    jwks_uri: str | None = None

    # === AUDIT SETTINGS ===
    audit_enabled: bool = True
    # JSONL file receiving audit records in addition to the audit logger
    audit_storage_path: str | None = None

    @field_validator("policies", mode="before")
    @classmethod
    def split_policies(cls, value):
        if isinstance(value, str):
            return [item for item in value.replace(",", " ").split() if item]
        return value

    @property
    def authentication_enabled(self) -> bool:
        return bool(self.jwt_issuer)

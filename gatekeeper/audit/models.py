"""Audit data models.

One record per authorization decision.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class AuditRecord(BaseModel):
    """Outcome of a single authorization decision.

    For granted requests, ``matched_policies`` lists the allow policies
    that granted access; for denied requests, the deny policies that
    caused the denial (empty when the request was denied by default).
    """

    model_config = ConfigDict(frozen=True)

    record_id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique identifier for this record"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the decision was made"
    )

    allowed: bool = Field(description="Whether access was granted")
    audience: str = Field(description="Audience the request was made for")
    subject: str | None = Field(
        default=None,
        description="Principal whose evaluation decided the outcome"
    )
    principals: list[str] = Field(default_factory=list)
    resource: str = Field(default="")
    action: str = Field(default="")
    context: dict[str, Any] = Field(default_factory=dict)
    matched_policies: list[str] = Field(
        default_factory=list,
        description="IDs of the policies that decided the outcome"
    )

    def to_log_dict(self) -> dict[str, Any]:
        """Get the exported form of the record."""
        return {
            "allowed": self.allowed,
            "audience": self.audience,
            "subject": self.subject or "",
            "resource": self.resource,
            "action": self.action,
            "matchedPolicyIDs": list(self.matched_policies),
        }

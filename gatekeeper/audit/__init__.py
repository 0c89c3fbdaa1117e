"""Gatekeeper Audit Package.

Records every authorization decision.

Usage:
    from gatekeeper.audit import LoggingAuditSink, MemoryAuditSink

    sink = MemoryAuditSink()
    doorman = Doorman(registry, audit_sink=sink)
    doorman.is_allowed("https://service.example.com", request)

    sink.records[-1].allowed
"""

from gatekeeper.audit.models import AuditRecord
from gatekeeper.audit.sinks import (
    AuditSink,
    FileAuditSink,
    LoggingAuditSink,
    MemoryAuditSink,
    MultiAuditSink,
)

__all__ = [
    "AuditRecord",
    "AuditSink",
    "FileAuditSink",
    "LoggingAuditSink",
    "MemoryAuditSink",
    "MultiAuditSink",
]

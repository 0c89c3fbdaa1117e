"""Audit sinks.

A sink receives every audit record synchronously from the engine.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from gatekeeper.audit.models import AuditRecord

logger = logging.getLogger(__name__)

# Decisions are written to their own logger so they can be routed apart
# from application logs.
audit_logger = logging.getLogger("gatekeeper.audit")


class AuditSink(ABC):
    """Receives authorization decisions."""

    @abstractmethod
    def log(self, record: AuditRecord) -> None:
        pass


class LoggingAuditSink(AuditSink):
    """Writes each decision as a JSON line on the audit logger."""

    def __init__(self, log: logging.Logger | None = None):
        self.logger = log or audit_logger

    def log(self, record: AuditRecord) -> None:
        level = logging.INFO if record.allowed else logging.WARNING
        self.logger.log(level, json.dumps(record.to_log_dict(), sort_keys=True))


class MemoryAuditSink(AuditSink):
    """Keeps records in memory.

    Useful in tests and for inspecting recent decisions.
    """

    def __init__(self, max_records: int | None = None):
        self.max_records = max_records
        self.records: list[AuditRecord] = []
        self._lock = threading.Lock()

    def log(self, record: AuditRecord) -> None:
        with self._lock:
            self.records.append(record)
            if self.max_records is not None and len(self.records) > self.max_records:
                del self.records[: len(self.records) - self.max_records]

    def clear(self) -> None:
        with self._lock:
            self.records.clear()


class FileAuditSink(AuditSink):
    """Appends records to a JSONL file, one record per line.

    Not meant for high volume; prefer shipping the audit logger output.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        logger.info("FileAuditSink writing to %s", self.path)

    def log(self, record: AuditRecord) -> None:
        line = record.model_dump_json()
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def read(self) -> list[AuditRecord]:
        """Read back every stored record."""
        if not self.path.exists():
            return []

        records = []
        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    records.append(AuditRecord.model_validate_json(line))
        return records


class MultiAuditSink(AuditSink):
    """Forwards each record to several sinks."""

    def __init__(self, sinks: list[AuditSink]):
        self.sinks = list(sinks)

    def log(self, record: AuditRecord) -> None:
        for sink in self.sinks:
            sink.log(record)

"""Tests for audit records and sinks."""

import json
import logging

from gatekeeper.audit import (
    AuditRecord,
    FileAuditSink,
    LoggingAuditSink,
    MemoryAuditSink,
    MultiAuditSink,
)


def make_record(allowed: bool = True, **overrides) -> AuditRecord:
    fields = {
        "allowed": allowed,
        "audience": "https://svc1/",
        "subject": "userid:42",
        "principals": ["userid:42", "tag:admins"],
        "resource": "doc:1",
        "action": "read",
        "matched_policies": ["1"],
    }
    fields.update(overrides)
    return AuditRecord(**fields)


class TestAuditRecord:
    """Test audit record export."""

    def test_to_log_dict(self):
        assert make_record().to_log_dict() == {
            "allowed": True,
            "audience": "https://svc1/",
            "subject": "userid:42",
            "resource": "doc:1",
            "action": "read",
            "matchedPolicyIDs": ["1"],
        }

    def test_to_log_dict_without_subject(self):
        record = make_record(allowed=False, subject=None, matched_policies=[])
        exported = record.to_log_dict()
        assert exported["subject"] == ""
        assert exported["matchedPolicyIDs"] == []


class TestSinks:
    """Test audit sinks."""

    def test_logging_sink(self, caplog):
        caplog.set_level(logging.INFO, logger="gatekeeper.audit")
        sink = LoggingAuditSink()

        sink.log(make_record())
        sink.log(make_record(allowed=False))

        assert len(caplog.records) == 2
        assert caplog.records[0].levelno == logging.INFO
        assert caplog.records[1].levelno == logging.WARNING
        assert json.loads(caplog.records[0].getMessage())["matchedPolicyIDs"] == ["1"]

    def test_memory_sink_limit(self):
        sink = MemoryAuditSink(max_records=2)
        for resource in ("a", "b", "c"):
            sink.log(make_record(resource=resource))

        assert [r.resource for r in sink.records] == ["b", "c"]
        sink.clear()
        assert sink.records == []

    def test_file_sink(self, tmp_path):
        sink = FileAuditSink(tmp_path / "audit" / "decisions.jsonl")
        sink.log(make_record())
        sink.log(make_record(allowed=False))

        records = sink.read()
        assert [r.allowed for r in records] == [True, False]
        assert records[0].principals == ["userid:42", "tag:admins"]

    def test_file_sink_empty(self, tmp_path):
        assert FileAuditSink(tmp_path / "none.jsonl").read() == []

    def test_multi_sink(self):
        first, second = MemoryAuditSink(), MemoryAuditSink()
        MultiAuditSink([first, second]).log(make_record())

        assert len(first.records) == 1
        assert len(second.records) == 1

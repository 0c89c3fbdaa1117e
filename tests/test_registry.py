"""Tests for policy loading and the audience registry."""

import textwrap
import threading

import pytest

from gatekeeper.authz import AudienceRegistry, AuthzRequest, Configuration, Doorman
from gatekeeper.authz.errors import (
    ConditionError,
    DuplicateAudienceError,
    DuplicatePolicyError,
    EmptySourceError,
    InvalidConfigurationError,
    LoadError,
)
from gatekeeper.authz.loader import load_configuration, resolve_sources
from gatekeeper.audit import MemoryAuditSink

SVC1_YAML = textwrap.dedent("""
    audience: https://svc1/
    tags:
      admins:
        - userid:maria
    policies:
      - id: "1"
        description: Maria reads documents
        subjects: ["tag:admins"]
        resources: ["doc:<.*>"]
        actions: ["read"]
        effect: allow
""")

SVC2_YAML = textwrap.dedent("""
    audience: https://svc2/
    policies:
      - id: "1"
        subjects: ["*"]
        resources: ["*"]
        actions: ["*"]
        effect: allow
""")


@pytest.fixture
def write(tmp_path):
    """Write a policies file and return its path."""
    def _write(name: str, content: str) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return str(path)
    return _write


class TestLoader:
    """Test reading policies files."""

    def test_load_configuration(self, write):
        config = load_configuration(write("svc1.yaml", SVC1_YAML))

        assert config.audience == "https://svc1/"
        assert config.tags == {"admins": ["userid:maria"]}
        assert len(config.policies) == 1
        assert config.policies[0].description == "Maria reads documents"

    def test_empty_file(self, write):
        with pytest.raises(EmptySourceError):
            load_configuration(write("empty.yaml", ""))

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoadError, match="cannot read source"):
            resolve_sources([str(tmp_path / "missing.yaml")])

    def test_empty_audience(self, write):
        path = write("noaud.yaml", "policies: []\n")
        with pytest.raises(InvalidConfigurationError, match="empty audience"):
            load_configuration(path)

    def test_not_a_mapping(self, write):
        with pytest.raises(InvalidConfigurationError):
            load_configuration(write("list.yaml", "- a\n- b\n"))

    def test_invalid_yaml(self, write):
        with pytest.raises(InvalidConfigurationError):
            load_configuration(write("bad.yaml", "audience: [unclosed\n"))

    def test_invalid_effect(self, write):
        content = textwrap.dedent("""
            audience: svc
            policies:
              - id: "1"
                effect: perhaps
        """)
        with pytest.raises(InvalidConfigurationError):
            load_configuration(write("effect.yaml", content))

    def test_no_policies_is_a_warning(self, write, caplog):
        config = load_configuration(write("nopol.yaml", "audience: svc\n"))

        assert config.policies == []
        assert "no policies found" in caplog.text

    def test_directory_source(self, write, tmp_path):
        write("policies.d/b.yml", SVC2_YAML)
        write("policies.d/a.yaml", SVC1_YAML)
        write("policies.d/README.txt", "ignored")

        files = resolve_sources([str(tmp_path / "policies.d")])
        assert [f.name for f in files] == ["a.yaml", "b.yml"]

    def test_empty_directory(self, tmp_path):
        (tmp_path / "empty.d").mkdir()
        with pytest.raises(EmptySourceError):
            resolve_sources([str(tmp_path / "empty.d")])


class TestAudienceRegistry:
    """Test loading and reloading audiences."""

    def test_load(self, write):
        registry = AudienceRegistry([write("svc1.yaml", SVC1_YAML), write("svc2.yaml", SVC2_YAML)])
        registry.load()

        assert sorted(registry.audiences()) == ["https://svc1/", "https://svc2/"]
        config = registry.lookup("https://svc1/")
        assert config is not None
        assert len(config.store) == 1
        assert registry.lookup("https://other/") is None

    def test_duplicate_audience(self, write):
        registry = AudienceRegistry([write("a.yaml", SVC1_YAML), write("b.yaml", SVC1_YAML)])
        with pytest.raises(DuplicateAudienceError):
            registry.load()
        assert registry.audiences() == []

    def test_duplicate_policy_id(self, write):
        content = SVC1_YAML + (
            '  - id: "1"\n'
            '    subjects: ["*"]\n'
            '    resources: ["*"]\n'
            '    actions: ["*"]\n'
            '    effect: deny\n'
        )
        registry = AudienceRegistry([write("dup.yaml", content)])
        with pytest.raises(DuplicatePolicyError) as excinfo:
            registry.load()
        assert excinfo.value.source.endswith("dup.yaml")

    def test_malformed_condition(self, write):
        content = textwrap.dedent("""
            audience: svc
            policies:
              - id: "1"
                subjects: ["*"]
                resources: ["*"]
                actions: ["*"]
                effect: allow
                conditions:
                  remoteIP:
                    type: CIDRCondition
                    options: {}
        """)
        registry = AudienceRegistry([write("cond.yaml", content)])
        with pytest.raises(ConditionError):
            registry.load()

    def test_failed_reload_keeps_previous(self, write):
        svc1 = write("svc1.yaml", SVC1_YAML)
        registry = AudienceRegistry([svc1])
        registry.load()
        before = registry.snapshot

        broken = write("broken.yaml", "")
        with pytest.raises(EmptySourceError):
            registry.load([svc1, write("svc2.yaml", SVC2_YAML), broken])

        assert registry.snapshot is before
        assert registry.audiences() == ["https://svc1/"]
        assert registry.lookup("https://svc2/") is None
        assert registry.sources == [svc1]

    def test_reload_replaces_audiences(self, write):
        path = write("svc.yaml", SVC1_YAML)
        registry = AudienceRegistry([path])
        registry.load()

        write("svc.yaml", SVC2_YAML)
        registry.reload()

        assert registry.audiences() == ["https://svc2/"]

    def test_reader_keeps_consistent_snapshot(self, write):
        registry = AudienceRegistry([write("svc1.yaml", SVC1_YAML)])
        registry.load()
        snapshot = registry.snapshot

        registry.load([write("svc2.yaml", SVC2_YAML)])

        assert list(snapshot) == ["https://svc1/"]
        assert list(registry.snapshot) == ["https://svc2/"]
        with pytest.raises(TypeError):
            snapshot["x"] = None

    def test_publish_duplicate_audience_keeps_previous(self, write):
        registry = AudienceRegistry([write("svc1.yaml", SVC1_YAML)])
        registry.load()
        previous = registry.snapshot

        with pytest.raises(DuplicateAudienceError):
            registry.publish([
                Configuration(audience="https://svc2/"),
                Configuration(audience="https://svc2/"),
            ])

        assert registry.snapshot is previous

    def test_publish(self):
        registry = AudienceRegistry([])
        registry.publish([Configuration(audience="https://svc2/")])

        assert registry.audiences() == ["https://svc2/"]
        assert registry.lookup("https://svc2/").source is None

    def test_concurrent_decisions_during_reloads(self, write):
        svc1 = write("svc1.yaml", SVC1_YAML)
        registry = AudienceRegistry([svc1])
        registry.load()
        doorman = Doorman(registry, audit_sink=MemoryAuditSink(max_records=10))
        request = AuthzRequest(
            principals=doorman.expand_principals("https://svc1/", ["userid:maria"]),
            resource="doc:1",
            action="read",
        )
        results = []

        def decide():
            for _ in range(200):
                results.append(doorman.is_allowed("https://svc1/", request))

        threads = [threading.Thread(target=decide) for _ in range(4)]
        for thread in threads:
            thread.start()
        for _ in range(20):
            registry.reload()
        for thread in threads:
            thread.join()

        assert len(results) == 800
        assert all(results)


class TestLoadedDecisions:
    """Test decisions against loaded files."""

    def test_regex_resource_and_tag(self, write):
        registry = AudienceRegistry([write("svc1.yaml", SVC1_YAML)])
        registry.load()
        doorman = Doorman(registry, audit_sink=MemoryAuditSink())

        principals = doorman.expand_principals("https://svc1/", ["userid:maria"])
        assert principals == ["userid:maria", "tag:admins"]

        request = AuthzRequest(principals=principals, resource="doc:abc", action="read")
        assert doorman.is_allowed("https://svc1/", request)

        request = AuthzRequest(principals=["userid:maria"], resource="doc:abc", action="read")
        assert not doorman.is_allowed("https://svc1/", request)

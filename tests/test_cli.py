"""Tests for the deploymeta command line."""

import json

import pytest
from deploymeta import cli
from deploymeta.config.settings import get_settings
from deploymeta.core.errors import ExitCode
from deploymeta.providers.memory import InMemoryAdapter
from deploymeta.resources.adapter import ErrorCode
from deploymeta.resources.policy import get_policy
from deploymeta.resources.record import AttributeRecord

DESIRED_YAML = """
resources:
  www:
    kind: dns_record
    name: www
    zone_name: example.com
    type: CNAME
    values: [t.example.com]
  ns:
    kind: nameservers
    ns_records: [ns2.example.com, ns1.example.com]
"""


@pytest.fixture
def remote(monkeypatch, factory_env):
    """Route every adapter the CLI builds to a shared in-memory store."""
    adapters = {}

    def fake_create_adapter(kind, context):
        assert context.deployment_name == "acme"
        if kind not in adapters:
            adapters[kind] = InMemoryAdapter(get_policy(kind))
        return adapters[kind]

    monkeypatch.setattr(cli, "create_adapter", fake_create_adapter)
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    return adapters


@pytest.fixture
def paths(tmp_path):
    desired = tmp_path / "desired.yaml"
    desired.write_text(DESIRED_YAML)
    return desired, tmp_path / "state.json"


def read_state(path):
    return json.loads(path.read_text())["resources"]


class TestInformational:
    def test_kinds(self, remote, capsys):
        assert cli.main(["kinds"]) == 0

        out = capsys.readouterr().out
        assert "dns_record" in out
        assert "monitoring_write_token" in out

    def test_schema(self, remote, capsys):
        assert cli.main(["schema", "dns_record"]) == 0

        out = capsys.readouterr().out
        assert "deploymeta_dns_record" in out
        assert "zone_name" in out

    def test_schema_unknown_kind(self, remote):
        assert cli.main(["schema", "bucket"]) == ExitCode.PRECONDITION_FAILED

    def test_no_command_prints_help(self, remote):
        assert cli.main([]) == 1


class TestApply:
    def test_plan_against_empty_state(self, remote, paths, capsys):
        desired, state = paths

        assert cli.main(["--state", str(state), "plan", "-f", str(desired)]) == 0

        assert "Plan: 2 to create, 0 to update, 0 to delete." in capsys.readouterr().out
        assert not state.exists()

    def test_apply_creates_and_saves_state(self, remote, paths):
        desired, state = paths

        assert cli.main(["--state", str(state), "apply", "-f", str(desired)]) == 0

        resources = read_state(state)
        assert resources["www"]["attributes"]["id"] == "dns-record-1"
        assert resources["ns"]["kind"] == "nameservers"
        assert remote["dns_record"].count("create") == 1

    def test_second_apply_is_noop(self, remote, paths, capsys):
        desired, state = paths
        cli.main(["--state", str(state), "apply", "-f", str(desired)])
        capsys.readouterr()

        assert cli.main(["--state", str(state), "apply", "-f", str(desired)]) == 0

        assert "Plan: 0 to create, 0 to update, 0 to delete." in capsys.readouterr().out
        assert remote["dns_record"].count("create") == 1
        assert remote["nameservers"].count("create") == 1

    def test_dry_run_makes_no_changes(self, remote, paths):
        desired, state = paths

        assert cli.main(["--state", str(state), "apply", "-f", str(desired), "--dry-run"]) == 0

        assert not state.exists()
        assert remote == {}

    def test_drift_is_recreated(self, remote, paths):
        desired, state = paths
        cli.main(["--state", str(state), "apply", "-f", str(desired)])
        remote["dns_record"].forget("dns-record-1")

        assert cli.main(["--state", str(state), "apply", "-f", str(desired)]) == 0

        assert read_state(state)["www"]["attributes"]["id"] == "dns-record-2"

    def test_transient_failure_exit_code(self, remote, paths):
        desired, state = paths
        remote["dns_record"] = InMemoryAdapter(get_policy("dns_record"))
        remote["dns_record"].fail_next(ErrorCode.UNAVAILABLE)

        code = cli.main(["--state", str(state), "apply", "-f", str(desired), "--no-refresh"])

        assert code == ExitCode.TRANSIENT_ERROR
        assert "www" not in read_state(state)

    def test_immutable_change_exit_code(self, remote, paths, capsys):
        desired, state = paths
        cli.main(["--state", str(state), "apply", "-f", str(desired)])
        desired.write_text(DESIRED_YAML.replace("name: www", "name: api"))

        code = cli.main(["--state", str(state), "apply", "-f", str(desired)])

        assert code == ExitCode.PRECONDITION_FAILED
        assert "cannot be changed after creation" in capsys.readouterr().err

    def test_missing_desired_file(self, remote, tmp_path):
        code = cli.main(["--state", str(tmp_path / "s.json"), "plan", "-f", str(tmp_path / "none.yaml")])

        assert code == ExitCode.CONFIG_ERROR


class TestStateCommands:
    def test_import(self, remote, paths, capsys):
        _, state = paths
        remote["dns_record"] = InMemoryAdapter(get_policy("dns_record"))
        remote["dns_record"].seed(
            AttributeRecord(name="api", zone_name="example.com", type="TXT", values=("b", "a")),
            identifier="dns-77",
        )

        assert cli.main(["--state", str(state), "import", "api", "dns_record", "dns-77"]) == 0

        attributes = read_state(state)["api"]["attributes"]
        assert attributes["id"] == "dns-77"
        assert attributes["values"] == ["a", "b"]
        assert "Imported deploymeta_dns_record 'dns-77'" in capsys.readouterr().out

    def test_import_existing_address(self, remote, paths):
        desired, state = paths
        cli.main(["--state", str(state), "apply", "-f", str(desired)])

        code = cli.main(["--state", str(state), "import", "www", "dns_record", "dns-record-1"])

        assert code == ExitCode.PRECONDITION_FAILED

    def test_import_missing_remote(self, remote, paths):
        _, state = paths

        code = cli.main(["--state", str(state), "import", "api", "dns_record", "dns-404"])

        assert code == ExitCode.REMOTE_ERROR
        assert not state.exists()

    def test_delete(self, remote, paths):
        desired, state = paths
        cli.main(["--state", str(state), "apply", "-f", str(desired)])

        assert cli.main(["--state", str(state), "delete", "www"]) == 0
        assert cli.main(["--state", str(state), "delete", "ns"]) == 0

        assert read_state(state) == {}
        assert remote["dns_record"].records == {}
        # nameservers are only dropped from state
        assert remote["nameservers"].count("delete") == 0

    def test_delete_unknown_address(self, remote, paths):
        _, state = paths

        assert cli.main(["--state", str(state), "delete", "nothing"]) == 0

    def test_refresh_reports_drift(self, remote, paths, capsys):
        desired, state = paths
        cli.main(["--state", str(state), "apply", "-f", str(desired)])
        remote["dns_record"].forget("dns-record-1")
        capsys.readouterr()

        assert cli.main(["--state", str(state), "refresh"]) == 0

        assert "www no longer exists remotely" in capsys.readouterr().out
        assert "www" not in read_state(state)

    def test_deployment(self, remote, capsys):
        remote["deployment"] = InMemoryAdapter(get_policy("deployment"))
        remote["deployment"].seed(AttributeRecord(id="dep-1", dns_zone_name="acme.example.com"))

        assert cli.main(["deployment"]) == 0

        assert "acme.example.com" in capsys.readouterr().out


def test_missing_credentials(monkeypatch, paths):
    desired, state = paths
    monkeypatch.delenv("DEPLOYMETA_LICENCE_KEY", raising=False)
    monkeypatch.delenv("DEPLOYMETA_DEPLOYMENT_NAME", raising=False)
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    get_settings.cache_clear()

    try:
        code = cli.main(["--state", str(state), "apply", "-f", str(desired)])
    finally:
        get_settings.cache_clear()

    assert code == ExitCode.CONFIG_ERROR

"""Tests for the persisted resource state file."""

import json

import pytest
from deploymeta.core.errors import ConfigurationError
from deploymeta.resources.record import AttributeRecord
from deploymeta.state import ResourceState, load_state, save_state


def test_state_round_trip(tmp_path):
    path = tmp_path / "state.json"
    state = ResourceState()
    state.set("www", "dns_record", AttributeRecord(id="dns-1", name="www", values=("a", "b")))
    state.set("ns", "nameservers", AttributeRecord(ns_records=("ns1",)))

    save_state(state, path)
    loaded = load_state(path)

    assert set(loaded.resources) == {"www", "ns"}
    assert loaded.get("www").kind == "dns_record"
    assert loaded.get("www").attributes["values"] == ("a", "b")
    assert loaded.get("ns").attributes == {"ns_records": ("ns1",)}


def test_state_file_format(tmp_path):
    path = tmp_path / "state.json"
    state = ResourceState()
    state.set("token", "monitoring_write_token", AttributeRecord(id="tok-1", token="secret"))

    save_state(state, path)

    raw = path.read_text()
    assert raw.endswith("\n")
    assert json.loads(raw) == {
        "version": 1,
        "resources": {
            "token": {"kind": "monitoring_write_token", "attributes": {"id": "tok-1", "token": "secret"}},
        },
    }


def test_missing_state_file_is_empty(tmp_path):
    state = load_state(tmp_path / "missing.json")

    assert state.resources == {}


def test_invalid_state_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json")

    with pytest.raises(ConfigurationError, match="not valid JSON"):
        load_state(path)


def test_remove_unknown_address_is_ignored():
    state = ResourceState()
    state.remove("nothing")

    assert state.get("nothing") is None

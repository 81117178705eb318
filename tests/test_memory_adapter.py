import pytest
from deploymeta.providers.memory import InMemoryAdapter
from deploymeta.resources.adapter import ErrorCode, RemoteError
from deploymeta.resources.policy import get_policy
from deploymeta.resources.record import AttributeRecord


def test_create_assigns_identifiers(dns_adapter):
    first = dns_adapter.create(AttributeRecord(name="a"))
    second = dns_adapter.create(AttributeRecord(name="b"))

    assert first == {"id": "dns-1"}
    assert second == {"id": "dns-2"}
    assert dns_adapter.records["dns-2"]["name"] == "b"


def test_missing_instance_is_not_found(dns_adapter):
    with pytest.raises(RemoteError) as exc_info:
        dns_adapter.get("dns-9")

    assert exc_info.value.code is ErrorCode.NOT_FOUND


def test_fail_next_applies_once(dns_adapter):
    dns_adapter.fail_next(ErrorCode.DEADLINE_EXCEEDED)

    with pytest.raises(RemoteError):
        dns_adapter.create(AttributeRecord(name="a"))

    assert dns_adapter.create(AttributeRecord(name="a")) == {"id": "dns-1"}
    assert dns_adapter.count("create") == 2


def test_singleton_store():
    adapter = InMemoryAdapter(get_policy("terraform_output"))

    assert adapter.create(AttributeRecord(vpc_id="vpc-1")) == {}
    assert adapter.get(None) == {"vpc_id": "vpc-1"}

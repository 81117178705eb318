"""Tests for the static resource policy table."""

import pytest
from deploymeta.core.errors import InvalidFieldValue, PreconditionFailed
from deploymeta.resources.policy import (
    POLICIES,
    DeleteSemantics,
    UpdateSemantics,
    get_policy,
    list_policies,
)
from deploymeta.resources.record import AttributeRecord, FieldKind


class TestPolicyTable:
    def test_six_kinds(self):
        assert set(POLICIES) == {
            "dns_record",
            "nameservers",
            "aws_acm_certificate",
            "monitoring_write_token",
            "terraform_output",
            "deployment",
        }
        assert len(list_policies()) == 6

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            POLICIES["extra"] = POLICIES["dns_record"]  # type: ignore[index]

    def test_lookup_by_type_name(self):
        assert get_policy("deploymeta_dns_record") is get_policy("dns_record")

    def test_unknown_kind(self):
        with pytest.raises(PreconditionFailed, match="Unknown resource kind"):
            get_policy("bucket")

    def test_dns_record(self):
        policy = get_policy("dns_record")
        assert policy.identifier_field == "id"
        assert policy.fields["values"].kind is FieldKind.SET
        assert policy.immutable_fields == {"name", "zone_name", "type"}
        assert policy.update_supported
        assert policy.delete_semantics is DeleteSemantics.REMOTE_CALL
        assert policy.import_supported

    def test_nameservers_singleton_reapplied(self):
        policy = get_policy("nameservers")
        assert policy.singleton
        assert policy.set_fields == ("ns_records",)
        assert policy.update_semantics is UpdateSemantics.REAPPLY
        assert not policy.update_supported
        assert policy.delete_semantics is DeleteSemantics.LOCAL_NOOP

    def test_monitoring_token_immutable_without_delete(self):
        policy = get_policy("monitoring_write_token")
        assert policy.immutable_fields == {"token"}
        assert policy.fields["token"].sensitive
        assert policy.delete_semantics is DeleteSemantics.LOCAL_NOOP
        assert policy.update_semantics is UpdateSemantics.LOCAL_NOOP

    def test_terraform_output_all_scalar(self):
        policy = get_policy("terraform_output")
        assert policy.singleton
        assert policy.set_fields == ()
        assert len(policy.fields) == 11

    def test_deployment_read_only(self):
        policy = get_policy("deployment")
        assert policy.read_only
        assert not policy.import_supported

    def test_schema(self):
        schema = get_policy("aws_acm_certificate").schema()
        assert schema.name == "deploymeta_aws_acm_certificate"
        assert "arn" in schema.attributes


class TestCoerce:
    def test_coerces_scalars_and_sets(self):
        record = get_policy("dns_record").coerce({"name": "www", "values": ["a", "b"], "type": "TXT"})
        assert record["values"] == ("a", "b")
        assert record["name"] == "www"

    def test_rejects_unknown_attribute(self):
        with pytest.raises(InvalidFieldValue, match="no attribute 'ttl'"):
            get_policy("dns_record").coerce({"ttl": 300})

    def test_rejects_string_for_set_field(self):
        with pytest.raises(InvalidFieldValue, match="list of strings"):
            get_policy("nameservers").coerce({"ns_records": "ns1.example.com"})


class TestValidators:
    def _dns(self, **overrides):
        values = {"name": "www", "zone_name": "example.com", "type": "CNAME", "values": ("t.example.com",)}
        values.update(overrides)
        return AttributeRecord(values)

    def test_valid_dns_record(self):
        get_policy("dns_record").validate(self._dns(), "create")

    def test_invalid_dns_type(self):
        with pytest.raises(InvalidFieldValue) as exc_info:
            get_policy("dns_record").validate(self._dns(type="MX"), "create")
        assert exc_info.value.field == "type"
        assert "'MX' is invalid" in exc_info.value.message

    def test_missing_required_field(self):
        with pytest.raises(InvalidFieldValue) as exc_info:
            get_policy("dns_record").validate(self._dns(values=()), "create")
        assert exc_info.value.field == "values"

    def test_invalid_field_is_precondition_failure(self):
        assert issubclass(InvalidFieldValue, PreconditionFailed)

    def test_computed_fields_are_not_required(self):
        get_policy("monitoring_write_token").validate(AttributeRecord(), "create")

    def test_every_user_field_is_required(self):
        policy = get_policy("aws_acm_certificate")
        record = AttributeRecord(
            arn="arn:aws:acm:us-east-1:123:certificate/abc",
            domain_name="www.example.com",
            validation_cname_name="_x.www.example.com",
            validation_cname_value="_y.acm-validations.aws",
        )

        with pytest.raises(InvalidFieldValue) as exc_info:
            policy.validate(record, "create")

        assert exc_info.value.field == "status"

"""
Static resource policy table.

Each resource kind is described by a frozen ``ResourcePolicy``: which field
holds the remote identifier, how every field is compared, which fields are
fixed at creation, and how update, delete and import behave. The table is
built once at import time and never mutated.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable

from deploymeta.core.errors import InvalidFieldValue, PreconditionFailed
from deploymeta.resources.record import AttributeRecord, FieldKind

TYPE_NAME_PREFIX = "deploymeta"

DNS_RECORD_TYPES = ("TXT", "CNAME")


class UpdateSemantics(Enum):
    """What Update does for a kind."""

    REMOTE_CALL = "remote_call"  # adapter update
    REAPPLY = "reapply"  # re-send the create payload, fully replaced server-side
    LOCAL_NOOP = "local_noop"  # nothing mutable remotely; keep prior state


class DeleteSemantics(Enum):
    """What Delete does for a kind."""

    REMOTE_CALL = "remote_call"
    LOCAL_NOOP = "local_noop"  # drop local state only


@dataclass(frozen=True)
class FieldSpec:
    kind: FieldKind = FieldKind.SCALAR
    description: str = ""
    computed: bool = False
    sensitive: bool = False


@dataclass(frozen=True)
class ResourceSchema:
    """Schema metadata describing a managed resource kind."""

    name: str
    description: str
    attributes: dict[str, str]


Validator = Callable[["ResourcePolicy", AttributeRecord, str], None]


@dataclass(frozen=True)
class ResourcePolicy:
    kind: str
    description: str
    fields: Mapping[str, FieldSpec]
    identifier_field: str = ""
    immutable_fields: frozenset[str] = frozenset()
    update_semantics: UpdateSemantics = UpdateSemantics.REMOTE_CALL
    delete_semantics: DeleteSemantics = DeleteSemantics.REMOTE_CALL
    import_supported: bool = False
    read_only: bool = False
    validators: tuple[Validator, ...] = field(default=())

    @property
    def type_name(self) -> str:
        return f"{TYPE_NAME_PREFIX}_{self.kind}"

    @property
    def singleton(self) -> bool:
        """Kinds without an identifier exist at most once per deployment."""
        return not self.identifier_field

    @property
    def update_supported(self) -> bool:
        return self.update_semantics is UpdateSemantics.REMOTE_CALL

    @property
    def set_fields(self) -> tuple[str, ...]:
        return tuple(name for name, spec in self.fields.items() if spec.kind is FieldKind.SET)

    def identifier_of(self, record: Mapping[str, Any]) -> str | None:
        if self.singleton:
            return None
        value = record.get(self.identifier_field)
        return value or None

    def coerce(self, values: Mapping[str, Any]) -> AttributeRecord:
        """Build a record from loosely typed user input (e.g. parsed YAML)."""
        coerced: dict[str, Any] = {}
        for name, value in values.items():
            spec = self.fields.get(name)
            if spec is None:
                raise InvalidFieldValue(
                    f"{self.type_name} has no attribute '{name}'",
                    field=name,
                    kind=self.kind,
                    operation="configure",
                )
            if value is None:
                coerced[name] = None
            elif spec.kind is FieldKind.SET:
                if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
                    raise InvalidFieldValue(
                        f"Attribute '{name}' of {self.type_name} must be a list of strings",
                        field=name,
                        kind=self.kind,
                        operation="configure",
                    )
                coerced[name] = tuple(str(item) for item in value)
            else:
                coerced[name] = str(value)
        return AttributeRecord(coerced)

    def validate(self, record: AttributeRecord, operation: str) -> None:
        for validator in self.validators:
            validator(self, record, operation)

    def schema(self) -> ResourceSchema:
        return ResourceSchema(
            name=self.type_name,
            description=self.description,
            attributes={name: spec.description for name, spec in self.fields.items()},
        )


def require_fields(policy: ResourcePolicy, record: AttributeRecord, operation: str) -> None:
    for name, spec in policy.fields.items():
        if spec.computed:
            continue
        value = record.get(name)
        if value is None or value == "" or value == ():
            raise InvalidFieldValue(
                f"Attribute '{name}' is required for {policy.type_name}",
                field=name,
                kind=policy.kind,
                operation=operation,
            )


def dns_record_type(policy: ResourcePolicy, record: AttributeRecord, operation: str) -> None:
    rr_type = record.get("type")
    if rr_type not in DNS_RECORD_TYPES:
        valid = ", ".join(f"'{t}'" for t in DNS_RECORD_TYPES)
        raise InvalidFieldValue(
            f"the DNS record type '{rr_type}' is invalid. Valid values are [{valid}]",
            field="type",
            kind=policy.kind,
            operation=operation,
        )


def _fields(**specs: FieldSpec) -> Mapping[str, FieldSpec]:
    return MappingProxyType(dict(specs))


DNS_RECORD = ResourcePolicy(
    kind="dns_record",
    description="Registers DNS records for a deployment.",
    identifier_field="id",
    fields=_fields(
        id=FieldSpec(description="The DNS record ID", computed=True),
        name=FieldSpec(description="The DNS record name"),
        zone_name=FieldSpec(description="The DNS zone name"),
        type=FieldSpec(description="The DNS record type. Must be one of ['TXT', 'CNAME']"),
        values=FieldSpec(FieldKind.SET, description="The DNS record values"),
    ),
    immutable_fields=frozenset({"name", "zone_name", "type"}),
    import_supported=True,
    validators=(require_fields, dns_record_type),
)

NAMESERVERS = ResourcePolicy(
    kind="nameservers",
    description="Registers DNS nameservers for the deployment's default domain.",
    fields=_fields(
        ns_records=FieldSpec(FieldKind.SET, description="The NS records to associate with the deployment."),
    ),
    update_semantics=UpdateSemantics.REAPPLY,
    delete_semantics=DeleteSemantics.LOCAL_NOOP,
    validators=(require_fields,),
)

AWS_ACM_CERTIFICATE = ResourcePolicy(
    kind="aws_acm_certificate",
    description="Registers an AWS ACM certificate for a deployment.",
    identifier_field="id",
    fields=_fields(
        id=FieldSpec(description="The certificate ID", computed=True),
        arn=FieldSpec(description="The Amazon Resource Name (ARN) of the certificate"),
        domain_name=FieldSpec(description="The domain name for the certificate, for example: 'www.example.com'"),
        validation_cname_name=FieldSpec(description="The CNAME name used for domain validation"),
        validation_cname_value=FieldSpec(description="The CNAME value used for domain validation"),
        status=FieldSpec(description="The status of the certificate"),
    ),
    import_supported=True,
    validators=(require_fields,),
)

MONITORING_WRITE_TOKEN = ResourcePolicy(
    kind="monitoring_write_token",
    description="A write token used to send events to the centralised monitoring service.",
    identifier_field="id",
    fields=_fields(
        id=FieldSpec(description="The token ID", computed=True),
        token=FieldSpec(description="The write token", computed=True, sensitive=True),
    ),
    immutable_fields=frozenset({"token"}),
    update_semantics=UpdateSemantics.LOCAL_NOOP,
    delete_semantics=DeleteSemantics.LOCAL_NOOP,
    import_supported=True,
)

TERRAFORM_OUTPUT = ResourcePolicy(
    kind="terraform_output",
    description="Registers infrastructure outputs for a deployment.",
    fields=_fields(
        saml_sso_acs_url=FieldSpec(description="The SAML SSO ACS URL"),
        saml_sso_entity_id=FieldSpec(description="The SAML SSO Entity ID"),
        cognito_user_pool_id=FieldSpec(description="The Cognito user pool ID"),
        dns_cname_record_for_app_domain=FieldSpec(description="The CNAME record for the app domain"),
        dns_cname_record_for_auth_domain=FieldSpec(description="The CNAME record for the auth domain"),
        web_client_id=FieldSpec(description="The web client ID"),
        cli_client_id=FieldSpec(description="The CLI client ID"),
        terraform_client_id=FieldSpec(description="The Terraform client ID"),
        read_only_client_id=FieldSpec(description="The read-only client ID"),
        provisioner_client_id=FieldSpec(description="The provisioner client ID"),
        vpc_id=FieldSpec(description="The VPC ID"),
    ),
    update_semantics=UpdateSemantics.REAPPLY,
    delete_semantics=DeleteSemantics.LOCAL_NOOP,
    validators=(require_fields,),
)

DEPLOYMENT = ResourcePolicy(
    kind="deployment",
    description="Metadata about the current deployment.",
    fields=_fields(
        id=FieldSpec(description="The deployment ID", computed=True),
        dns_zone_name=FieldSpec(description="The default DNS zone name associated with the deployment", computed=True),
        default_subdomain=FieldSpec(
            description="The default DNS subdomain associated with the deployment", computed=True
        ),
    ),
    delete_semantics=DeleteSemantics.LOCAL_NOOP,
    read_only=True,
)

POLICIES: Mapping[str, ResourcePolicy] = MappingProxyType(
    {
        policy.kind: policy
        for policy in (
            DNS_RECORD,
            NAMESERVERS,
            AWS_ACM_CERTIFICATE,
            MONITORING_WRITE_TOKEN,
            TERRAFORM_OUTPUT,
            DEPLOYMENT,
        )
    }
)


def get_policy(kind: str) -> ResourcePolicy:
    """Look up a policy by kind, accepting the prefixed type name too."""
    key = kind.removeprefix(f"{TYPE_NAME_PREFIX}_")
    policy = POLICIES.get(key)
    if policy is None:
        known = ", ".join(sorted(POLICIES))
        raise PreconditionFailed(
            f"Unknown resource kind '{kind}' (known kinds: {known})",
            kind=kind,
            operation="lookup",
        )
    return policy


def list_policies() -> list[ResourcePolicy]:
    return list(POLICIES.values())

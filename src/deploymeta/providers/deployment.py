"""
Adapters for resources managed through the Factory deployment service.

RPCs used (``commonfate.factory.deployment.v1alpha1.DeploymentService``):
    CreateDNSRecord / GetDNSRecord / UpdateDNSRecord / DeleteDNSRecord
    RegisterNameservers / GetDeployment
    RegisterAWSACMCertificate / GetAWSACMCertificate /
    UpdateAWSACMCertificate / DeregisterAWSACMCertificate
    SetTerraformOutput / GetTerraformOutput
"""

from __future__ import annotations

from deploymeta.providers.base import ConnectAdapter
from deploymeta.providers.registry import register_adapter
from deploymeta.resources.record import AttributeRecord

DNS_RECORD_TYPE_PREFIX = "DNS_RECORD_TYPE_"


class DNSRecordAdapter(ConnectAdapter):
    KIND = "dns_record"
    WIRE_FIELDS = {
        "id": "id",
        "name": "name",
        "zone_name": "dnsZoneName",
        "type": "type",
        "values": "values",
    }
    # GetDNSRecord is only trusted for the identifier and the values.
    OBSERVED_FIELDS = ("id", "values")

    def create(self, record: AttributeRecord) -> AttributeRecord:
        message = self._to_wire(record)
        message["type"] = f"{DNS_RECORD_TYPE_PREFIX}{record['type']}"
        response = self._call("CreateDNSRecord", message)
        return self._record(self._from_wire(response.get("created")))

    def get(self, identifier: str | None) -> AttributeRecord:
        response = self._call("GetDNSRecord", {"id": identifier})
        return self._record(self._observed(response.get("record")))

    def update(self, identifier: str | None, record: AttributeRecord) -> AttributeRecord:
        # Only the values of an existing record can change.
        response = self._call("UpdateDNSRecord", {"id": identifier, "values": list(record.get("values") or ())})
        return self._record(self._from_wire(response.get("updated")))

    def delete(self, identifier: str | None) -> None:
        self._call("DeleteDNSRecord", {"id": identifier})

    @staticmethod
    def _record(record: AttributeRecord) -> AttributeRecord:
        rr_type = record.get("type")
        if isinstance(rr_type, str):
            record = record.merge({"type": rr_type.removeprefix(DNS_RECORD_TYPE_PREFIX)})
        return record


class NameserversAdapter(ConnectAdapter):
    KIND = "nameservers"
    WIRE_FIELDS = {"ns_records": "nameservers"}

    def create(self, record: AttributeRecord) -> AttributeRecord:
        self._call("RegisterNameservers", self._to_wire(record))
        return AttributeRecord()

    def get(self, identifier: str | None) -> AttributeRecord:
        response = self._call("GetDeployment")
        return self._observed(response.get("deployment"))


class AWSACMCertificateAdapter(ConnectAdapter):
    KIND = "aws_acm_certificate"
    WIRE_FIELDS = {
        "id": "id",
        "arn": "arn",
        "domain_name": "domainName",
        "validation_cname_name": "validationCnameName",
        "validation_cname_value": "validationCnameValue",
        "status": "status",
    }

    def create(self, record: AttributeRecord) -> AttributeRecord:
        response = self._call("RegisterAWSACMCertificate", self._to_wire(record.without("id")))
        return self._from_wire(response.get("certificate"))

    def get(self, identifier: str | None) -> AttributeRecord:
        response = self._call("GetAWSACMCertificate", {"id": identifier})
        return self._observed(response.get("certificate"))

    def update(self, identifier: str | None, record: AttributeRecord) -> AttributeRecord:
        certificate = self._to_wire(record)
        certificate["id"] = identifier
        response = self._call("UpdateAWSACMCertificate", {"certificate": certificate})
        return self._from_wire(response.get("certificate"))

    def delete(self, identifier: str | None) -> None:
        self._call("DeregisterAWSACMCertificate", {"id": identifier})


class TerraformOutputAdapter(ConnectAdapter):
    KIND = "terraform_output"
    WIRE_FIELDS = {
        "saml_sso_acs_url": "samlSsoAcsUrl",
        "saml_sso_entity_id": "samlSsoEntityId",
        "cognito_user_pool_id": "cognitoUserPoolId",
        "dns_cname_record_for_app_domain": "dnsCnameRecordForAppDomain",
        "dns_cname_record_for_auth_domain": "dnsCnameRecordForAuthDomain",
        "web_client_id": "webClientId",
        "cli_client_id": "cliClientId",
        "terraform_client_id": "terraformClientId",
        "read_only_client_id": "readOnlyClientId",
        "provisioner_client_id": "provisionerClientId",
        "vpc_id": "vpcId",
    }

    def create(self, record: AttributeRecord) -> AttributeRecord:
        self._call("SetTerraformOutput", {"output": self._to_wire(record)})
        return AttributeRecord()

    def get(self, identifier: str | None) -> AttributeRecord:
        response = self._call("GetTerraformOutput")
        return self._observed(response.get("output"))


class DeploymentAdapter(ConnectAdapter):
    KIND = "deployment"
    WIRE_FIELDS = {
        "id": "id",
        "dns_zone_name": "dnsZoneName",
        "default_subdomain": "defaultSubdomain",
    }

    def get(self, identifier: str | None) -> AttributeRecord:
        response = self._call("GetDeployment")
        return self._observed(response.get("deployment"))


register_adapter(DNSRecordAdapter.KIND, DNSRecordAdapter.from_context, description="DNS records")
register_adapter(NameserversAdapter.KIND, NameserversAdapter.from_context, description="Deployment nameservers")
register_adapter(
    AWSACMCertificateAdapter.KIND,
    AWSACMCertificateAdapter.from_context,
    description="AWS ACM certificate registrations",
)
register_adapter(
    TerraformOutputAdapter.KIND,
    TerraformOutputAdapter.from_context,
    description="Infrastructure outputs",
)
register_adapter(DeploymentAdapter.KIND, DeploymentAdapter.from_context, description="Deployment metadata")

__all__ = [
    "AWSACMCertificateAdapter",
    "DNSRecordAdapter",
    "DeploymentAdapter",
    "NameserversAdapter",
    "TerraformOutputAdapter",
]

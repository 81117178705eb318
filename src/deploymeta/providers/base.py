from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from deploymeta.clients.connect import ConnectClient
from deploymeta.config.context import FactoryContext
from deploymeta.resources.adapter import ErrorCode, RemoteError
from deploymeta.resources.policy import get_policy
from deploymeta.resources.record import AttributeRecord, FieldKind

DEPLOYMENT_SERVICE = "commonfate.factory.deployment.v1alpha1.DeploymentService"
MONITORING_TOKEN_SERVICE = "commonfate.factory.monitoring.v1alpha1.TokenService"


class ConnectAdapter:
    """Base for adapters backed by a Factory Connect service.

    ``WIRE_FIELDS`` maps record field names to the service's JSON field names.
    Operations a kind has no RPC for raise ``RemoteError(UNIMPLEMENTED)``.
    """

    KIND: ClassVar[str] = ""
    SERVICE: ClassVar[str] = DEPLOYMENT_SERVICE
    WIRE_FIELDS: ClassVar[dict[str, str]] = {}
    # Fields a Get response reports authoritatively; None means every wire field.
    OBSERVED_FIELDS: ClassVar[tuple[str, ...] | None] = None

    def __init__(self, client: ConnectClient) -> None:
        self._client = client

    @classmethod
    def from_context(cls, context: FactoryContext) -> ConnectAdapter:
        return cls(ConnectClient.from_context(context))

    def create(self, record: AttributeRecord) -> AttributeRecord:
        raise self._unimplemented("create")

    def get(self, identifier: str | None) -> AttributeRecord:
        raise self._unimplemented("get")

    def update(self, identifier: str | None, record: AttributeRecord) -> AttributeRecord:
        raise self._unimplemented("update")

    def delete(self, identifier: str | None) -> None:
        raise self._unimplemented("delete")

    def _call(self, method: str, message: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._client.call(self.SERVICE, method, message)

    def _to_wire(self, record: Mapping[str, Any]) -> dict[str, Any]:
        message: dict[str, Any] = {}
        for name, wire_name in self.WIRE_FIELDS.items():
            value = record.get(name)
            if value is None:
                continue
            message[wire_name] = list(value) if isinstance(value, tuple) else value
        return message

    def _from_wire(self, message: Mapping[str, Any] | None) -> AttributeRecord:
        message = message or {}
        return AttributeRecord(
            (name, message[wire_name]) for name, wire_name in self.WIRE_FIELDS.items() if wire_name in message
        )

    def _observed(self, message: Mapping[str, Any] | None) -> AttributeRecord:
        """Decode a Get response, filling proto3 defaults for omitted fields.

        The JSON codec leaves out empty strings and lists, so a field missing
        from a Get response means the remote value is empty.
        """
        record = self._from_wire(message)
        policy = get_policy(self.KIND)
        fields = self.OBSERVED_FIELDS if self.OBSERVED_FIELDS is not None else tuple(self.WIRE_FIELDS)
        defaults = {
            name: () if policy.fields[name].kind is FieldKind.SET else ""
            for name in fields
            if name not in record and name in policy.fields
        }
        return AttributeRecord({**defaults, **record})

    def _unimplemented(self, operation: str) -> RemoteError:
        return RemoteError(ErrorCode.UNIMPLEMENTED, f"{self.KIND} has no remote {operation} operation")

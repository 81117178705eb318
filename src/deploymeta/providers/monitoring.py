"""Adapter for monitoring write tokens (``TokenService``)."""

from __future__ import annotations

from deploymeta.providers.base import MONITORING_TOKEN_SERVICE, ConnectAdapter
from deploymeta.providers.registry import register_adapter
from deploymeta.resources.adapter import ErrorCode, RemoteError
from deploymeta.resources.record import AttributeRecord


class MonitoringWriteTokenAdapter(ConnectAdapter):
    KIND = "monitoring_write_token"
    SERVICE = MONITORING_TOKEN_SERVICE
    WIRE_FIELDS = {"id": "id", "token": "writeToken"}

    def create(self, record: AttributeRecord) -> AttributeRecord:
        response = self._call("CreateWriteToken", {})
        return self._from_wire(response)

    def get(self, identifier: str | None) -> AttributeRecord:
        response = self._call("GetWriteToken", {"id": identifier})
        if not response.get("isValid", True):
            raise RemoteError(ErrorCode.NOT_FOUND, f"write token '{identifier}' is no longer valid")
        # The token value is only ever returned on creation.
        return AttributeRecord(id=response.get("id", identifier))


register_adapter(
    MonitoringWriteTokenAdapter.KIND,
    MonitoringWriteTokenAdapter.from_context,
    description="Monitoring write tokens",
)

__all__ = ["MonitoringWriteTokenAdapter"]

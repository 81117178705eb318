from __future__ import annotations

from enum import Enum
from typing import Protocol

from deploymeta.resources.record import AttributeRecord


class ErrorCode(str, Enum):
    """Structured error codes reported by the remote service (Connect codes)."""

    CANCELED = "canceled"
    UNKNOWN = "unknown"
    INVALID_ARGUMENT = "invalid_argument"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    PERMISSION_DENIED = "permission_denied"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    FAILED_PRECONDITION = "failed_precondition"
    ABORTED = "aborted"
    OUT_OF_RANGE = "out_of_range"
    UNIMPLEMENTED = "unimplemented"
    INTERNAL = "internal"
    UNAVAILABLE = "unavailable"
    DATA_LOSS = "data_loss"
    UNAUTHENTICATED = "unauthenticated"

    @classmethod
    def parse(cls, value: str | None) -> ErrorCode:
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class RemoteError(RuntimeError):
    """Raised by remote adapters; carries the service's structured error code."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(f"{code.value}: {message}")
        self.code = code
        self.message = message


class RemoteAdapter(Protocol):
    """Contract for the per-kind bridge to the remote configuration service."""

    def create(self, record: AttributeRecord) -> AttributeRecord:
        ...

    def get(self, identifier: str | None) -> AttributeRecord:
        ...

    def update(self, identifier: str | None, record: AttributeRecord) -> AttributeRecord:
        ...

    def delete(self, identifier: str | None) -> None:
        ...

"""In-memory stand-in for the remote configuration service."""

from __future__ import annotations

import itertools
from dataclasses import dataclass

from deploymeta.resources.adapter import ErrorCode, RemoteError
from deploymeta.resources.policy import ResourcePolicy
from deploymeta.resources.record import AttributeRecord

SINGLETON_KEY = ""


@dataclass(frozen=True)
class RecordedCall:
    method: str
    identifier: str | None = None
    record: AttributeRecord | None = None


class InMemoryAdapter:
    """Remote adapter keeping instances in a dict.

    Every call is appended to ``calls``; ``fail_next`` makes the next call
    raise ``RemoteError`` with the given code instead of touching the store.
    """

    def __init__(self, policy: ResourcePolicy, *, id_prefix: str | None = None) -> None:
        self.policy = policy
        self.records: dict[str, AttributeRecord] = {}
        self.calls: list[RecordedCall] = []
        self._id_prefix = id_prefix or policy.kind.replace("_", "-")
        self._counter = itertools.count(1)
        self._pending_failure: RemoteError | None = None

    def fail_next(self, code: ErrorCode, message: str = "injected failure") -> None:
        self._pending_failure = RemoteError(code, message)

    def seed(self, record: AttributeRecord, identifier: str | None = None) -> AttributeRecord:
        """Store an instance directly, as if created out-of-band."""
        key = identifier or SINGLETON_KEY
        if self.policy.identifier_field and identifier:
            record = record.merge({self.policy.identifier_field: identifier})
        self.records[key] = record
        return record

    def forget(self, identifier: str | None = None) -> None:
        """Drop an instance behind the reconciler's back (simulated drift)."""
        self.records.pop(identifier or SINGLETON_KEY, None)

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call.method == method)

    def create(self, record: AttributeRecord) -> AttributeRecord:
        self._record_call("create", record=record)
        if self.policy.singleton:
            self.records[SINGLETON_KEY] = record
            return AttributeRecord()
        identifier = f"{self._id_prefix}-{next(self._counter)}"
        stored = record.merge({self.policy.identifier_field: identifier})
        self.records[identifier] = stored
        return AttributeRecord({self.policy.identifier_field: identifier})

    def get(self, identifier: str | None) -> AttributeRecord:
        self._record_call("get", identifier=identifier)
        return self._lookup(identifier)

    def update(self, identifier: str | None, record: AttributeRecord) -> AttributeRecord:
        self._record_call("update", identifier=identifier, record=record)
        current = self._lookup(identifier)
        updated = current.merge(record)
        self.records[identifier or SINGLETON_KEY] = updated
        return updated

    def delete(self, identifier: str | None) -> None:
        self._record_call("delete", identifier=identifier)
        self._lookup(identifier)
        del self.records[identifier or SINGLETON_KEY]

    def _lookup(self, identifier: str | None) -> AttributeRecord:
        record = self.records.get(identifier or SINGLETON_KEY)
        if record is None:
            raise RemoteError(ErrorCode.NOT_FOUND, f"{self.policy.kind} '{identifier}' not found")
        return record

    def _record_call(
        self,
        method: str,
        *,
        identifier: str | None = None,
        record: AttributeRecord | None = None,
    ) -> None:
        self.calls.append(RecordedCall(method, identifier, record))
        if self._pending_failure is not None:
            failure, self._pending_failure = self._pending_failure, None
            raise failure

"""
Generic reconciliation engine.

One ``Reconciler`` drives every resource kind. Behaviour differences between
kinds come from the kind's ``ResourcePolicy``; remote calls go through the
kind's ``RemoteAdapter``. Operations are synchronous and never retried here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from deploymeta.core.errors import (
    FatalError,
    ImmutableFieldChanged,
    NotFoundError,
    PreconditionFailed,
    ReconcileError,
    TransientError,
    UnsupportedOperation,
)
from deploymeta.resources.adapter import RemoteAdapter, RemoteError
from deploymeta.resources.classifier import ErrorClass, classify, error_code_of
from deploymeta.resources.policy import (
    DeleteSemantics,
    ResourcePolicy,
    UpdateSemantics,
    get_policy,
)
from deploymeta.resources.record import AttributeRecord, normalize, values_equal

logger = structlog.get_logger()


class Operation(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    IMPORT = "import"


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of one front-end call. ``state`` is None when state must be cleared."""

    kind: str
    operation: Operation
    state: AttributeRecord | None

    @property
    def removed(self) -> bool:
        return self.state is None


class Reconciler:
    def __init__(self, policy: ResourcePolicy, adapter: RemoteAdapter) -> None:
        self.policy = policy
        self._adapter = adapter
        self._log = logger.bind(kind=policy.kind)

    def create(self, desired: Mapping[str, Any]) -> AttributeRecord:
        policy = self.policy
        desired = AttributeRecord(desired)
        self._reject_read_only(Operation.CREATE)
        existing = policy.identifier_of(desired)
        if existing is not None:
            raise PreconditionFailed(
                f"Cannot create {policy.type_name}: identifier is already set",
                kind=policy.kind,
                operation=Operation.CREATE.value,
                identifier=existing,
            )
        policy.validate(desired, Operation.CREATE.value)

        try:
            returned = self._adapter.create(desired)
        except Exception as exc:
            raise self._failure(Operation.CREATE, exc, None) from exc

        observed = desired.merge(returned)
        identifier = policy.identifier_of(observed)
        if not policy.singleton and identifier is None:
            # The instance may exist remotely with no way to address it.
            raise FatalError(
                f"{policy.type_name} was created but the remote service did not report an identifier; "
                "the remote instance may be orphaned and needs manual cleanup",
                kind=policy.kind,
                operation=Operation.CREATE.value,
            )
        self._log.info("resource_created", identifier=identifier)
        return observed

    def read(self, prior: Mapping[str, Any]) -> AttributeRecord | None:
        """Refresh ``prior`` from the remote service. ``None`` means the instance is gone."""
        return self._read(AttributeRecord(prior), Operation.READ)

    def update(self, prior: Mapping[str, Any], desired: Mapping[str, Any]) -> AttributeRecord:
        policy = self.policy
        prior = AttributeRecord(prior)
        desired = AttributeRecord(desired)
        self._reject_read_only(Operation.UPDATE)
        identifier = self._require_identifier(prior, Operation.UPDATE)
        self._check_immutable(prior, desired, identifier)

        payload = prior.merge(desired)
        policy.validate(payload, Operation.UPDATE.value)

        if policy.update_semantics is UpdateSemantics.LOCAL_NOOP:
            self._log.debug("resource_update_skipped", identifier=identifier)
            return payload

        try:
            if policy.update_semantics is UpdateSemantics.REAPPLY:
                returned = self._adapter.create(payload)
            else:
                returned = self._adapter.update(identifier, payload)
        except Exception as exc:
            raise self._failure(Operation.UPDATE, exc, identifier) from exc

        observed = payload.merge(returned)
        if identifier is not None:
            observed = observed.merge({policy.identifier_field: identifier})
        self._log.info(
            "resource_updated",
            identifier=identifier,
            semantics=policy.update_semantics.value,
        )
        return observed

    def delete(self, prior: Mapping[str, Any]) -> None:
        policy = self.policy
        prior = AttributeRecord(prior)
        self._reject_read_only(Operation.DELETE)
        if policy.delete_semantics is DeleteSemantics.LOCAL_NOOP:
            self._log.info("resource_forgotten", identifier=policy.identifier_of(prior))
            return

        identifier = self._require_identifier(prior, Operation.DELETE)
        try:
            self._adapter.delete(identifier)
        except Exception as exc:
            if classify(exc) is ErrorClass.NOT_FOUND:
                self._log.info("resource_already_deleted", identifier=identifier)
                return
            raise self._failure(Operation.DELETE, exc, identifier) from exc
        self._log.info("resource_deleted", identifier=identifier)

    def import_(self, external_id: str) -> AttributeRecord:
        policy = self.policy
        self._reject_read_only(Operation.IMPORT)
        if not policy.import_supported:
            raise UnsupportedOperation(
                f"{policy.type_name} does not support import",
                kind=policy.kind,
                operation=Operation.IMPORT.value,
            )
        if not external_id:
            raise PreconditionFailed(
                f"An identifier is required to import {policy.type_name}",
                kind=policy.kind,
                operation=Operation.IMPORT.value,
            )

        seed = AttributeRecord({policy.identifier_field: external_id})
        observed = self._read(seed, Operation.IMPORT)
        if observed is None:
            raise NotFoundError(
                f"Cannot import {policy.type_name} '{external_id}': it does not exist",
                kind=policy.kind,
                operation=Operation.IMPORT.value,
                identifier=external_id,
            )
        self._log.info("resource_imported", identifier=external_id)
        return observed

    def _read(self, prior: AttributeRecord, operation: Operation) -> AttributeRecord | None:
        policy = self.policy
        identifier = self._require_identifier(prior, operation)
        try:
            observed = self._adapter.get(identifier)
        except Exception as exc:
            if classify(exc) is ErrorClass.NOT_FOUND:
                self._log.warning("resource_drift_detected", identifier=identifier, operation=operation.value)
                return None
            raise self._failure(operation, exc, identifier) from exc

        refreshed = prior.merge(observed)
        if identifier is not None:
            refreshed = refreshed.merge({policy.identifier_field: identifier})
        return normalize(refreshed, policy)

    def _require_identifier(self, record: AttributeRecord, operation: Operation) -> str | None:
        policy = self.policy
        if policy.singleton:
            return None
        identifier = policy.identifier_of(record)
        if identifier is None:
            raise PreconditionFailed(
                f"Cannot {operation.value} {policy.type_name} without '{policy.identifier_field}'; "
                "create or import it first",
                kind=policy.kind,
                operation=operation.value,
            )
        return identifier

    def _check_immutable(self, prior: AttributeRecord, desired: AttributeRecord, identifier: str | None) -> None:
        policy = self.policy
        if identifier is not None:
            wanted_id = policy.identifier_of(desired)
            if wanted_id is not None and wanted_id != identifier:
                raise ImmutableFieldChanged(policy.identifier_field, kind=policy.kind, identifier=identifier)

        for name, spec in policy.fields.items():
            if name not in policy.immutable_fields:
                continue
            wanted = desired.get(name)
            if wanted is None:
                continue
            if not values_equal(spec.kind, prior.get(name), wanted):
                raise ImmutableFieldChanged(name, kind=policy.kind, identifier=identifier)

    def _reject_read_only(self, operation: Operation) -> None:
        if self.policy.read_only:
            raise UnsupportedOperation(
                f"{self.policy.type_name} is read-only and does not support {operation.value}",
                kind=self.policy.kind,
                operation=operation.value,
            )

    def _failure(self, operation: Operation, exc: Exception, identifier: str | None) -> ReconcileError:
        policy = self.policy
        code = error_code_of(exc)
        remote_message = exc.message if isinstance(exc, RemoteError) else str(exc)
        target = f"{policy.type_name} '{identifier}'" if identifier else policy.type_name
        message = f"Unable to {operation.value} {target}, got error: {remote_message}"
        error_type: type[ReconcileError]
        if classify(exc) is ErrorClass.TRANSIENT:
            error_type = TransientError
        else:
            error_type = FatalError
        self._log.error(
            "reconcile_failed",
            operation=operation.value,
            identifier=identifier,
            error_code=code.value,
            error=remote_message,
        )
        return error_type(
            message,
            kind=policy.kind,
            operation=operation.value,
            identifier=identifier,
            remote_message=remote_message,
            details={"error_code": code.value},
        )


def apply(
    kind: str,
    operation: Operation | str,
    prior: Mapping[str, Any] | None = None,
    desired: Mapping[str, Any] | None = None,
    *,
    adapter: RemoteAdapter,
    import_id: str | None = None,
) -> ApplyResult:
    """
    Single entry point for the configuration front-end.

    Returns the new state to persist; ``ApplyResult.state`` is None when the
    persisted state must be cleared (delete, or drift detected on read).
    Failures are raised as ``ReconcileError`` subclasses.
    """
    policy = get_policy(kind)
    try:
        op = Operation(operation)
    except ValueError as exc:
        valid = ", ".join(o.value for o in Operation)
        raise UnsupportedOperation(
            f"Unknown operation '{operation}' for {policy.type_name}; expected one of {valid}",
            kind=policy.kind,
            operation=str(operation),
        ) from exc
    reconciler = Reconciler(policy, adapter)

    state: AttributeRecord | None
    if op is Operation.CREATE:
        state = reconciler.create(_required(desired, "desired", policy, op))
    elif op is Operation.READ:
        state = reconciler.read(prior or {})
    elif op is Operation.UPDATE:
        state = reconciler.update(
            _required(prior, "prior", policy, op),
            _required(desired, "desired", policy, op),
        )
    elif op is Operation.DELETE:
        reconciler.delete(prior or {})
        state = None
    else:
        if import_id is None and desired is not None and policy.identifier_field:
            import_id = desired.get(policy.identifier_field)
        state = reconciler.import_(import_id or "")
    return ApplyResult(kind=policy.kind, operation=op, state=state)


def _required(
    record: Mapping[str, Any] | None,
    name: str,
    policy: ResourcePolicy,
    operation: Operation,
) -> Mapping[str, Any]:
    if record is None:
        raise PreconditionFailed(
            f"{operation.value} of {policy.type_name} requires a {name} record",
            kind=policy.kind,
            operation=operation.value,
        )
    return record

"""
Desired-state planning and application.

Compares the desired resources from a YAML file with the persisted state,
produces a plan of per-resource actions and executes it one resource at a
time through the reconciler. No ordering between resources is implied.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml

from deploymeta.core.errors import ConfigurationError
from deploymeta.logging import bind_context
from deploymeta.resources.adapter import RemoteAdapter
from deploymeta.resources.policy import get_policy
from deploymeta.resources.reconciler import ApplyResult, Operation, apply
from deploymeta.resources.record import AttributeRecord, diff_fields
from deploymeta.state import ResourceState

logger = structlog.get_logger()

Action = Literal["create", "update", "delete", "read", "noop"]
AdapterLookup = Callable[[str], RemoteAdapter]


@dataclass(frozen=True)
class DesiredResource:
    address: str
    kind: str
    attributes: AttributeRecord


@dataclass(frozen=True)
class PlanChange:
    """Represents a single change detected during planning."""

    address: str
    kind: str
    action: Action
    fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class PlanResult:
    """Plan result summarising pending changes."""

    changes: list[PlanChange] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return any(change.action not in ("noop", "read") for change in self.changes)

    def summary(self) -> dict[str, int]:
        return dict(Counter(change.action for change in self.changes))


def parse_desired(data: Mapping[str, Any]) -> dict[str, DesiredResource]:
    resources = data.get("resources") or {}
    if not isinstance(resources, Mapping):
        raise ConfigurationError("'resources' must be a mapping of address to resource")

    desired: dict[str, DesiredResource] = {}
    for address, body in resources.items():
        if not isinstance(body, Mapping) or "kind" not in body:
            raise ConfigurationError(f"Resource '{address}' must be a mapping with a 'kind'")
        attributes = dict(body)
        policy = get_policy(str(attributes.pop("kind")))
        desired[str(address)] = DesiredResource(
            address=str(address),
            kind=policy.kind,
            attributes=policy.coerce(attributes),
        )
    return desired


def load_desired(path: Path) -> dict[str, DesiredResource]:
    """Load desired resources from a YAML file."""
    if not path.exists():
        raise ConfigurationError(f"Desired state file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{path} must contain a mapping")
    return parse_desired(data)


def plan(desired: Mapping[str, DesiredResource], state: ResourceState) -> PlanResult:
    changes: list[PlanChange] = []
    for address, resource in desired.items():
        policy = get_policy(resource.kind)
        entry = state.get(address)
        if policy.read_only:
            changes.append(PlanChange(address, resource.kind, "read"))
        elif entry is None:
            changes.append(PlanChange(address, resource.kind, "create"))
        elif entry.kind != resource.kind:
            changes.append(PlanChange(address, entry.kind, "delete"))
            changes.append(PlanChange(address, resource.kind, "create"))
        else:
            changed = diff_fields(policy, entry.attributes, resource.attributes)
            action: Action = "update" if changed else "noop"
            changes.append(PlanChange(address, resource.kind, action, tuple(changed)))

    for address, entry in state.resources.items():
        if address not in desired:
            changes.append(PlanChange(address, entry.kind, "delete"))
    return PlanResult(changes)


def refresh(state: ResourceState, adapter_for: AdapterLookup) -> list[str]:
    """Re-read every resource in ``state``; returns addresses dropped as drifted."""
    drifted: list[str] = []
    for address, entry in list(state.resources.items()):
        result = apply(entry.kind, Operation.READ, prior=entry.attributes, adapter=adapter_for(entry.kind))
        if result.removed:
            logger.warning("state_entry_removed", address=address, kind=entry.kind)
            state.remove(address)
            drifted.append(address)
        else:
            state.set(address, entry.kind, result.state)  # type: ignore[arg-type]
    return drifted


def apply_plan(
    result: PlanResult,
    desired: Mapping[str, DesiredResource],
    state: ResourceState,
    adapter_for: AdapterLookup,
) -> list[ApplyResult]:
    """Execute ``result`` and update ``state`` in place after each resource."""
    applied: list[ApplyResult] = []
    for change in result.changes:
        if change.action == "noop":
            continue

        entry = state.get(change.address)
        prior = entry.attributes if entry else None
        if change.action == "delete" and get_policy(change.kind).read_only:
            state.remove(change.address)
            continue

        operation = Operation(change.action)
        wanted = desired[change.address].attributes if change.address in desired else None
        outcome = apply(
            change.kind,
            operation,
            prior=prior,
            desired=wanted,
            adapter=adapter_for(change.kind),
        )
        if outcome.removed:
            state.remove(change.address)
        else:
            state.set(change.address, change.kind, outcome.state)  # type: ignore[arg-type]
        log = bind_context(address=change.address, kind=change.kind)
        log.info("resource_applied", action=change.action)
        applied.append(outcome)
    return applied

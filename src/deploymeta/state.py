from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from deploymeta.core.errors import ConfigurationError
from deploymeta.resources.record import AttributeRecord

DEFAULT_STATE_PATH = Path("deploymeta.state.json")
STATE_VERSION = 1


@dataclass
class StateEntry:
    kind: str
    attributes: AttributeRecord

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "attributes": self.attributes.to_dict()}


@dataclass
class ResourceState:
    """Persisted attribute records, keyed by resource address."""

    resources: Dict[str, StateEntry] = field(default_factory=dict)

    def set(self, address: str, kind: str, attributes: AttributeRecord) -> None:
        self.resources[address] = StateEntry(kind=kind, attributes=attributes)

    def get(self, address: str) -> StateEntry | None:
        return self.resources.get(address)

    def remove(self, address: str) -> None:
        self.resources.pop(address, None)


def load_state(path: Path | None = None) -> ResourceState:
    state_path = path or DEFAULT_STATE_PATH
    if not state_path.exists():
        return ResourceState()
    try:
        data = json.loads(state_path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"State file {state_path} is not valid JSON: {exc}") from exc
    resources = {
        address: StateEntry(kind=entry["kind"], attributes=AttributeRecord(entry.get("attributes", {})))
        for address, entry in data.get("resources", {}).items()
    }
    return ResourceState(resources=resources)


def save_state(state: ResourceState, path: Path | None = None) -> None:
    state_path = path or DEFAULT_STATE_PATH
    payload = {
        "version": STATE_VERSION,
        "resources": {address: entry.to_dict() for address, entry in state.resources.items()},
    }
    state_path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n")

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List

from deploymeta.config.context import FactoryContext
from deploymeta.resources.adapter import RemoteAdapter

AdapterFactory = Callable[[FactoryContext], RemoteAdapter]


@dataclass(frozen=True)
class AdapterSpec:
    """Metadata describing a registered remote adapter."""

    kind: str
    factory: AdapterFactory
    description: str | None = None


class AdapterRegistry:
    """Simple in-memory registry of remote adapters, one per resource kind."""

    def __init__(self) -> None:
        self._adapters: Dict[str, AdapterSpec] = {}

    def register(
        self,
        kind: str,
        factory: AdapterFactory,
        *,
        description: str | None = None,
    ) -> None:
        if not kind:
            raise ValueError("Resource kind is required")
        self._adapters[kind] = AdapterSpec(kind=kind, factory=factory, description=description)

    def create(self, kind: str, context: FactoryContext) -> RemoteAdapter:
        spec = self._adapters.get(kind)
        if spec is None:
            raise KeyError(f"No remote adapter registered for '{kind}'")
        return spec.factory(context)

    def list(self) -> List[AdapterSpec]:
        return list(self._adapters.values())


adapter_registry = AdapterRegistry()


def register_adapter(
    kind: str,
    factory: AdapterFactory,
    *,
    description: str | None = None,
) -> None:
    adapter_registry.register(kind, factory, description=description)


def create_adapter(kind: str, context: FactoryContext) -> RemoteAdapter:
    return adapter_registry.create(kind, context)


def list_adapters() -> List[AdapterSpec]:
    return adapter_registry.list()

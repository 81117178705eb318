"""Remote adapters and built-in registrations."""

# Import built-in adapters for side effects (registration)
from deploymeta.providers import deployment as _deployment  # noqa: F401
from deploymeta.providers import monitoring as _monitoring  # noqa: F401
from deploymeta.providers.memory import InMemoryAdapter
from deploymeta.providers.registry import (
    create_adapter,
    list_adapters,
    register_adapter,
)

__all__ = [
    "InMemoryAdapter",
    "create_adapter",
    "list_adapters",
    "register_adapter",
]

"""
Attribute records and the comparison policy.

An attribute record is the field/value bag describing one resource instance,
either as desired by the user or as observed on the remote service. Values are
strings (scalar fields), tuples of strings (set-typed fields) or opaque values.
``None`` means the value is unknown or not set.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from deploymeta.resources.policy import ResourcePolicy


class FieldKind(Enum):
    """How a field's values are compared."""

    SCALAR = "scalar"
    SET = "set"


class AttributeRecord(Mapping[str, Any]):
    """Immutable, ordered field/value mapping."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | Iterable[tuple[str, Any]] = (), /, **kwargs: Any) -> None:
        data = dict(values)
        data.update(kwargs)
        self._values: dict[str, Any] = {
            key: tuple(value) if isinstance(value, (list, set, frozenset)) else value
            for key, value in data.items()
        }

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"AttributeRecord({self._values!r})"

    def merge(self, other: Mapping[str, Any]) -> AttributeRecord:
        """Return a new record with ``other``'s known values layered on top."""
        merged = dict(self._values)
        for key, value in other.items():
            if value is not None:
                merged[key] = value
        return AttributeRecord(merged)

    def without(self, *fields: str) -> AttributeRecord:
        return AttributeRecord((k, v) for k, v in self._values.items() if k not in fields)

    def to_dict(self) -> dict[str, Any]:
        """Plain dict with set-typed values rendered as lists."""
        return {key: list(value) if isinstance(value, tuple) else value for key, value in self._values.items()}


def normalize_set(value: Iterable[str] | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    return tuple(sorted(set(value)))


def normalize(record: Mapping[str, Any], policy: ResourcePolicy) -> AttributeRecord:
    """Canonicalise set-typed fields (sorted, without duplicates)."""
    values = dict(record)
    for name in policy.set_fields:
        if name in values:
            values[name] = normalize_set(values[name])
    return AttributeRecord(values)


def values_equal(kind: FieldKind, left: Any, right: Any) -> bool:
    if kind is FieldKind.SET:
        if left is None or right is None:
            return left is right
        return set(left) == set(right)
    return left == right


def diff_fields(
    policy: ResourcePolicy,
    observed: Mapping[str, Any],
    desired: Mapping[str, Any],
) -> list[str]:
    """
    List the policy fields whose desired value differs from the observed one.

    Computed fields the user left unset (``None`` or absent) never count as a
    difference; their observed value is kept.
    """
    changed: list[str] = []
    for name, spec in policy.fields.items():
        if name == policy.identifier_field:
            continue
        wanted = desired.get(name)
        if wanted is None and spec.computed:
            continue
        if not values_equal(spec.kind, observed.get(name), wanted):
            changed.append(name)
    return changed


def records_equal(policy: ResourcePolicy, left: Mapping[str, Any], right: Mapping[str, Any]) -> bool:
    return not diff_fields(policy, left, right)

"""Server-side property transforms."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class TransformKind(str, Enum):
    SET_TO_SERVER_VALUE = "set_to_server_value"
    INCREMENT = "increment"
    MAXIMUM = "maximum"
    MINIMUM = "minimum"
    APPEND_MISSING_ELEMENTS = "append_missing_elements"
    REMOVE_ALL_FROM_ARRAY = "remove_all_from_array"


REQUEST_TIME = "REQUEST_TIME"


@dataclass(frozen=True)
class TransformDescriptor:
    """
    A single transform operation on one named property.
    """
    property: str
    kind: TransformKind
    value: Any = None

    def to_wire(self) -> dict[str, Any]:
        if self.kind in (
            TransformKind.APPEND_MISSING_ELEMENTS,
            TransformKind.REMOVE_ALL_FROM_ARRAY,
        ):
            return {"property": self.property, self.kind.value: {"values": list(self.value)}}
        return {"property": self.property, self.kind.value: self.value}


@dataclass(frozen=True)
class PropertyTransform:
    """
    Handle for one server-side transform, built by the factory functions below.

    A transform built from bad arguments carries the reason in ``error`` and
    has no descriptor. ``PropertyTransform()`` is uninitialized. Neither can
    be attached to a mutation.
    """
    descriptor: Optional[TransformDescriptor] = None
    error: Optional[Exception] = None

    @property
    def valid(self) -> bool:
        return self.descriptor is not None and self.error is None

    @property
    def property(self) -> Optional[str]:
        return self.descriptor.property if self.descriptor else None


def _invalid(message: str) -> PropertyTransform:
    return PropertyTransform(error=ValueError(message))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _numeric(prop: str, kind: TransformKind, value: Any) -> PropertyTransform:
    if not prop:
        return _invalid(f"{kind.value}: property name must be non-empty")
    if not _is_number(value):
        return _invalid(
            f"{kind.value} on {prop!r}: operand must be int or float, got {type(value).__name__}"
        )
    return PropertyTransform(TransformDescriptor(prop, kind, value))


def _array(prop: str, kind: TransformKind, values: tuple) -> PropertyTransform:
    if not prop:
        return _invalid(f"{kind.value}: property name must be non-empty")
    if not values:
        return _invalid(f"{kind.value} on {prop!r}: at least one value is required")
    return PropertyTransform(TransformDescriptor(prop, kind, tuple(values)))


def set_to_server_time(prop: str) -> PropertyTransform:
    """Set ``prop`` to the time the server processes the request."""
    if not prop:
        return _invalid("set_to_server_value: property name must be non-empty")
    return PropertyTransform(
        TransformDescriptor(prop, TransformKind.SET_TO_SERVER_VALUE, REQUEST_TIME)
    )


def increment(prop: str, value: int | float) -> PropertyTransform:
    """Add ``value`` to the stored number; a missing or non-numeric property becomes ``value``."""
    return _numeric(prop, TransformKind.INCREMENT, value)


def maximum(prop: str, value: int | float) -> PropertyTransform:
    return _numeric(prop, TransformKind.MAXIMUM, value)


def minimum(prop: str, value: int | float) -> PropertyTransform:
    return _numeric(prop, TransformKind.MINIMUM, value)


def append_missing_elements(prop: str, *values: Any) -> PropertyTransform:
    """Append each value not already present in the stored array."""
    return _array(prop, TransformKind.APPEND_MISSING_ELEMENTS, values)


def remove_all_from_array(prop: str, *values: Any) -> PropertyTransform:
    """Remove every occurrence of each value from the stored array."""
    return _array(prop, TransformKind.REMOVE_ALL_FROM_ARRAY, values)

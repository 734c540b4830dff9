"""Encoding of source values into property sets."""

from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Any, Mapping, Protocol, runtime_checkable

from .errors import EncodeError
from .keys import Key

PropertySet = Mapping[str, Any]

_SCALAR_TYPES = (type(None), bool, int, float, str, bytes, datetime, Key)


@runtime_checkable
class PropertySaver(Protocol):
    """Objects that produce their own properties."""

    def save(self) -> Mapping[str, Any]:
        ...


class EntityEncoder(Protocol):
    """Converts a source value into the property set stored under ``key``."""

    def encode(self, key: Key, src: Any) -> PropertySet:
        """Return the property set for ``src``. Raises on failure."""
        ...


class DefaultEncoder:
    """
    Encodes mappings, dataclass instances and ``PropertySaver`` objects.

    Property names must be non-empty strings. Values may be None, bool, int,
    float, str, bytes, datetime, Key, or lists and dicts of those.
    """

    def encode(self, key: Key, src: Any) -> PropertySet:
        if src is None:
            raise EncodeError("cannot encode None as an entity")

        if isinstance(src, PropertySaver):
            props = src.save()
            if not isinstance(props, Mapping):
                raise EncodeError(
                    f"{type(src).__name__}.save() must return a mapping, "
                    f"got {type(props).__name__}"
                )
        elif isinstance(src, Mapping):
            props = src
        elif dataclasses.is_dataclass(src) and not isinstance(src, type):
            props = {f.name: getattr(src, f.name) for f in dataclasses.fields(src)}
        else:
            raise EncodeError(f"invalid entity type {type(src).__name__}")

        out: dict[str, Any] = {}
        for name, value in props.items():
            if not isinstance(name, str) or not name:
                raise EncodeError(f"invalid property name {name!r}")
            _check_value(name, value)
            out[name] = value
        return out


def _check_value(name: str, value: Any) -> None:
    if isinstance(value, _SCALAR_TYPES):
        return
    if isinstance(value, (list, tuple)):
        for v in value:
            _check_value(name, v)
        return
    if isinstance(value, Mapping):
        for k, v in value.items():
            if not isinstance(k, str):
                raise EncodeError(f"property {name!r}: nested names must be strings")
            _check_value(name, v)
        return
    raise EncodeError(f"property {name!r}: unsupported type {type(value).__name__}")


default_encoder = DefaultEncoder()

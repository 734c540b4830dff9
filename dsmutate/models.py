from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from .keys import Key
from .transforms import TransformDescriptor


class OperationType(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    UPSERT = "upsert"
    DELETE = "delete"


@dataclass(frozen=True)
class Operation:
    """
    The operation a mutation performs.

    ``properties`` is present for insert, update and upsert, and None for delete.
    """
    op_type: OperationType
    properties: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        if self.op_type == OperationType.DELETE:
            if self.properties is not None:
                raise ValueError("delete operations carry no properties")
        elif self.properties is None:
            raise ValueError(f"{self.op_type.value} operations require properties")

    @property
    def is_delete(self) -> bool:
        return self.op_type == OperationType.DELETE


@dataclass(frozen=True)
class WireMutation:
    """
    A single wire-ready mutation message.

    ``property_mask`` and ``property_transforms`` are only set when transforms
    were attached; a None mask means "write all properties in the payload".
    """
    op_type: OperationType
    key: Key
    properties: Optional[Mapping[str, Any]] = None
    property_mask: Optional[tuple[str, ...]] = None
    property_transforms: tuple[TransformDescriptor, ...] = field(default_factory=tuple)

    @property
    def is_delete(self) -> bool:
        return self.op_type == OperationType.DELETE

    def to_dict(self) -> dict[str, Any]:
        msg: dict[str, Any]
        if self.is_delete:
            msg = {self.op_type.value: self.key.to_wire()}
        else:
            msg = {
                self.op_type.value: {
                    "key": self.key.to_wire(),
                    "properties": dict(self.properties or {}),
                }
            }
        if self.property_mask is not None:
            msg["property_mask"] = {"paths": list(self.property_mask)}
        if self.property_transforms:
            msg["property_transforms"] = [t.to_wire() for t in self.property_transforms]
        return msg


@dataclass
class MutationResult:
    """
    Outcome of one applied mutation.

    ``key`` is the stored key (with an allocated id for incomplete inserts).
    ``transform_results`` holds the value each transform produced, in order.
    """
    key: Key
    transform_results: list[Any] = field(default_factory=list)

"""
Mutations and their constructors.

Constructors never raise. A mutation that fails validation carries the
error in ``Mutation.error`` and every later decoration call is a no-op that
keeps the first error; ``build_batch`` reports it at the mutation's position.
"""

from __future__ import annotations

from typing import Any, Optional

from .encoding import EntityEncoder, default_encoder
from .errors import (
    IncompleteKeyError,
    InvalidKeyError,
    TransformOnDeleteError,
    UninitializedMutationError,
    UninitializedTransformError,
)
from .keys import Key, key_is_valid
from .metrics import observe_mutation_created
from .models import Operation, OperationType, WireMutation
from .transforms import PropertyTransform


class Mutation:
    """
    A change to a single entity.

    Build with ``new_insert``, ``new_upsert``, ``new_update`` or ``new_delete``;
    a bare ``Mutation()`` is uninitialized. A mutation is either valid
    (``operation`` set, ``error`` None) or failed (``error`` set).

    Not safe for concurrent decoration from multiple threads.
    """

    def __init__(
        self,
        key: Optional[Key] = None,
        operation: Optional[Operation] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.key = key
        self.operation = operation
        self.error = error
        self.transforms: list[PropertyTransform] = []
        self.property_mask: Optional[frozenset[str]] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.operation is not None

    @property
    def is_delete(self) -> bool:
        return self.operation is not None and self.operation.is_delete

    def with_transforms(self, *transforms: PropertyTransform) -> "Mutation":
        """
        Add server-side property transforms to the mutation.

        May be called multiple times. Order is preserved, first by call and
        then by argument position. Once transforms are attached, the property
        mask is set to the names in the mutation's own payload, so an empty
        payload writes nothing from the client and only the transforms run.

        Returns the same mutation for chaining.
        """
        if self.error is not None:
            return self
        if self.operation is None:
            self.error = UninitializedMutationError(
                "with_transforms called on uninitialized mutation"
            )
            return self
        if self.operation.is_delete:
            self.error = TransformOnDeleteError(
                "property transforms cannot be applied to a delete mutation"
            )
            return self

        for i, transform in enumerate(transforms):
            if not isinstance(transform, PropertyTransform) or not transform.valid:
                err = UninitializedTransformError(
                    f"with_transforms called with an uninitialized property transform at position {i}"
                )
                err.__cause__ = getattr(transform, "error", None)
                self.error = err
                return self

        self.transforms.extend(transforms)
        self._set_property_mask()
        return self

    def _set_property_mask(self) -> None:
        if not self.transforms:
            return
        self.property_mask = frozenset(self.operation.properties or ())

    def to_wire(self) -> WireMutation:
        """
        Return the wire message for a valid mutation.

        Raises:
            The mutation's error, or UninitializedMutationError.
        """
        if self.error is not None:
            raise self.error
        if self.operation is None:
            raise UninitializedMutationError("mutation was not built by a constructor")

        op = self.operation
        mask = None
        if self.property_mask is not None:
            mask = tuple(sorted(self.property_mask))
        return WireMutation(
            op_type=op.op_type,
            key=self.key,
            properties=op.properties,
            property_mask=mask,
            property_transforms=tuple(t.descriptor for t in self.transforms),
        )

    def __repr__(self) -> str:
        if self.error is not None:
            return f"Mutation(error={self.error!r})"
        if self.operation is None:
            return "Mutation(<uninitialized>)"
        return (
            f"Mutation({self.operation.op_type.value} {self.key}, "
            f"transforms={len(self.transforms)})"
        )


def _failed(op_type: OperationType, err: BaseException) -> Mutation:
    observe_mutation_created(op_type.value, ok=False)
    return Mutation(error=err)


def _write(
    op_type: OperationType,
    key: Optional[Key],
    src: Any,
    encoder: Optional[EntityEncoder],
    require_complete: bool = False,
) -> Mutation:
    if not key_is_valid(key):
        return _failed(op_type, InvalidKeyError(f"invalid key: {key}"))
    if require_complete and key.incomplete():
        return _failed(
            op_type,
            IncompleteKeyError(f"can't {op_type.value} the incomplete key: {key}"),
        )
    try:
        props = (encoder or default_encoder).encode(key, src)
    except Exception as exc:
        return _failed(op_type, exc)

    observe_mutation_created(op_type.value, ok=True)
    return Mutation(key=key, operation=Operation(op_type, dict(props)))


def new_insert(key: Key, src: Any, encoder: Optional[EntityEncoder] = None) -> Mutation:
    """
    Create a mutation that saves ``src`` under ``key``.

    Applying it to a key that already exists fails with an "already exists"
    error at apply time.
    """
    return _write(OperationType.INSERT, key, src, encoder)


def new_upsert(key: Key, src: Any, encoder: Optional[EntityEncoder] = None) -> Mutation:
    """Create a mutation that saves ``src`` under ``key`` whether or not it exists."""
    return _write(OperationType.UPSERT, key, src, encoder)


def new_update(key: Key, src: Any, encoder: Optional[EntityEncoder] = None) -> Mutation:
    """
    Create a mutation that replaces the entity stored under ``key``.

    The key must be complete. Applying it to a missing key fails with a
    "not found" error at apply time.
    """
    return _write(OperationType.UPDATE, key, src, encoder, require_complete=True)


def new_delete(key: Key) -> Mutation:
    """Create a mutation that deletes the entity stored under ``key``."""
    if not key_is_valid(key):
        return _failed(OperationType.DELETE, InvalidKeyError(f"invalid key: {key}"))
    if key.incomplete():
        return _failed(
            OperationType.DELETE,
            IncompleteKeyError(f"can't delete the incomplete key: {key}"),
        )
    observe_mutation_created(OperationType.DELETE.value, ok=True)
    return Mutation(key=key, operation=Operation(OperationType.DELETE))

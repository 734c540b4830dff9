from __future__ import annotations

from typing import Optional, Sequence


class DsMutateError(Exception):
    """Base exception for dsmutate errors."""


class MutationError(DsMutateError):
    """A mutation failed to construct or decorate."""


class InvalidKeyError(MutationError):
    """The key is malformed."""


class IncompleteKeyError(MutationError):
    """The operation requires a complete key."""


class UninitializedMutationError(MutationError):
    """The mutation was not built by one of the constructors."""


class UninitializedTransformError(MutationError):
    """A property transform was invalid or not built by a factory."""


class TransformOnDeleteError(MutationError):
    """Property transforms cannot be applied to a delete mutation."""


class EncodeError(DsMutateError):
    """A source value could not be encoded into a property set."""


class MultiError(DsMutateError):
    """
    Errors for a batch of mutations, aligned to input positions.

    ``errors[i]`` is the error of the i-th mutation, or None if it was valid.
    """

    def __init__(self, errors: Sequence[Optional[BaseException]]) -> None:
        self.errors: list[Optional[BaseException]] = list(errors)
        super().__init__(self._summary())

    def _summary(self) -> str:
        failed = [(i, e) for i, e in enumerate(self.errors) if e is not None]
        if not failed:
            return "(0 errors)"
        i, first = failed[0]
        if len(failed) == 1:
            return f"mutation {i}: {first}"
        return f"mutation {i}: {first} (and {len(failed) - 1} other errors)"

    def __len__(self) -> int:
        return len(self.errors)

    def __getitem__(self, index: int) -> Optional[BaseException]:
        return self.errors[index]

    def __iter__(self):
        return iter(self.errors)


class StoreError(DsMutateError):
    """Any failure while applying mutations to a store."""


class AlreadyExistsError(StoreError):
    """Insert targeted a key that already exists."""


class NotFoundError(StoreError):
    """Update targeted a key that does not exist."""


class BatchTooLargeError(StoreError):
    """The batch exceeds the configured mutation limit."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .errors import MultiError, UninitializedMutationError
from .metrics import observe_batch_build
from .models import WireMutation
from .mutation import Mutation

logger = logging.getLogger(__name__)


def build_batch(mutations: Iterable[Mutation]) -> list[WireMutation]:
    """
    Turn a batch of mutations into ordered wire messages.

    If any mutation carries an error, nothing is emitted and a MultiError is
    raised whose ``errors`` has one slot per input mutation (None for the
    valid ones). Otherwise every mutation is emitted in input order, except
    that a delete of a key already deleted earlier in the batch is dropped.
    Writes are never deduplicated, including a write and a delete on the
    same key.

    Pure function of its input: the mutations themselves are not modified.

    Raises:
        MultiError: If one or more mutations are invalid
    """
    muts = list(mutations)

    errors: list[Optional[BaseException]] = [None] * len(muts)
    failed = False
    for i, m in enumerate(muts):
        if m.error is not None:
            errors[i] = m.error
            failed = True
        elif m.operation is None:
            errors[i] = UninitializedMutationError(
                "mutation was not built by a constructor"
            )
            failed = True
    if failed:
        observe_batch_build("error")
        raise MultiError(errors)

    out: list[WireMutation] = []
    seen: set[str] = set()
    skipped = 0
    for m in muts:
        if m.is_delete:
            ks = m.key.canonical_string()
            if ks in seen:
                logger.debug("Dropping duplicate delete of %s from batch", ks)
                skipped += 1
                continue
            seen.add(ks)
        out.append(m.to_wire())

    observe_batch_build("success", emitted=len(out), deduplicated=skipped)
    return out

from __future__ import annotations

from typing import Iterable

from .registry import (
    DELETES_DEDUPLICATED_TOTAL,
    MUTATION_BATCH_SIZE,
    MUTATION_BATCHES_TOTAL,
    MUTATIONS_CREATED_TOTAL,
    STORE_APPLY_LATENCY_SECONDS,
    STORE_APPLY_TOTAL,
)


def observe_mutation_created(op_type: str, ok: bool) -> None:
    MUTATIONS_CREATED_TOTAL.labels(
        op_type=op_type, status="success" if ok else "error"
    ).inc()


def observe_batch_build(status: str, emitted: int = 0, deduplicated: int = 0) -> None:
    """
    Record one build_batch call.

    Size is only recorded for successful builds.
    """
    MUTATION_BATCHES_TOTAL.labels(status=status).inc()
    if status == "success":
        MUTATION_BATCH_SIZE.observe(emitted)
    if deduplicated:
        DELETES_DEDUPLICATED_TOTAL.inc(deduplicated)


def observe_store_apply(
    table: str,
    op_types: Iterable[str],
    status: str,
    latency_s: float,
) -> None:
    for op_type in op_types:
        STORE_APPLY_TOTAL.labels(table=table, op_type=op_type, status=status).inc()
    STORE_APPLY_LATENCY_SECONDS.labels(table=table).observe(latency_s)


__all__ = [
    "observe_mutation_created",
    "observe_batch_build",
    "observe_store_apply",
]

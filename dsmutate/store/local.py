from __future__ import annotations

import base64
import json
import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy.engine import Engine

from ..batch import build_batch
from ..config import StoreConfig
from ..errors import AlreadyExistsError, BatchTooLargeError, NotFoundError, StoreError
from ..keys import Key
from ..metrics import observe_store_apply
from ..models import MutationResult, OperationType, WireMutation
from ..mutation import Mutation
from ..transforms import TransformDescriptor, TransformKind
from .session import StoreSession

logger = logging.getLogger(__name__)

_MAX_ID = 2**53 - 1


class LocalStore:
    """
    SQL-backed store that applies wire mutations the way the remote service does.

    Each batch runs in a single transaction: insert on an existing key raises
    AlreadyExistsError, update on a missing key raises NotFoundError, and any
    failure rolls back the whole batch. Properties are stored as JSON, so
    datetimes, bytes and keys are read back as strings.

    Usage:
        store = LocalStore(engine, StoreConfig(table_name="entities"))
        store.create_schema()
        store.mutate(new_upsert(key, {"count": 0}))
    """

    def __init__(self, engine: Engine, config: Optional[StoreConfig] = None) -> None:
        self.engine = engine
        self.config = config or StoreConfig()
        self.table = self.config.table_name

    def create_schema(self) -> None:
        with self.engine.begin() as conn:
            conn.exec_driver_sql(
                f"CREATE TABLE IF NOT EXISTS {self.table} ("
                "entity_key VARCHAR(700) NOT NULL PRIMARY KEY, "
                "kind VARCHAR(255) NOT NULL, "
                "properties TEXT NOT NULL)"
            )

    def get(self, key: Key) -> Optional[dict[str, Any]]:
        """Return the stored properties for ``key``, or None if absent."""
        with StoreSession(self.engine) as session:
            return self._load(session, key)

    def mutate(self, *mutations: Mutation) -> list[MutationResult]:
        """
        Build and apply a batch of mutations.

        Raises:
            MultiError: If any mutation is invalid; nothing is applied
            StoreError: If applying the batch fails; nothing is applied
        """
        return self.apply(build_batch(mutations))

    def apply(self, wire_mutations: Sequence[WireMutation]) -> list[MutationResult]:
        """
        Apply built wire mutations in one transaction, in order.

        Returns one MutationResult per wire mutation.
        """
        muts = list(wire_mutations)
        if len(muts) > self.config.max_batch_size:
            raise BatchTooLargeError(
                f"batch has {len(muts)} mutations; limit is {self.config.max_batch_size}"
            )

        start_time = time.monotonic()
        request_time = datetime.now(timezone.utc)
        status = "success"
        try:
            with StoreSession(self.engine) as session:
                results = [self._apply_one(session, m, request_time) for m in muts]
        except StoreError:
            status = "error"
            raise
        finally:
            observe_store_apply(
                self.table,
                [m.op_type.value for m in muts],
                status,
                time.monotonic() - start_time,
            )

        logger.info("Applied %d mutations to %s", len(results), self.table)
        return results

    def _apply_one(
        self,
        session: StoreSession,
        m: WireMutation,
        request_time: datetime,
    ) -> MutationResult:
        key = m.key
        if m.op_type == OperationType.DELETE:
            session.execute(
                f"DELETE FROM {self.table} WHERE entity_key = :entity_key",
                {"entity_key": key.canonical_string()},
            )
            return MutationResult(key=key)

        if key.incomplete():
            key = self._allocate(session, key)
            existing = None
        else:
            existing = self._load(session, key)

        if m.op_type == OperationType.INSERT and existing is not None:
            raise AlreadyExistsError(f"entity already exists: {key}")
        if m.op_type == OperationType.UPDATE and existing is None:
            raise NotFoundError(f"no entity to update: {key}")

        payload = m.properties or {}
        if m.property_mask is None:
            props = dict(payload)
        else:
            props = dict(existing or {})
            for path in m.property_mask:
                if path in payload:
                    props[path] = payload[path]
                else:
                    props.pop(path, None)

        transform_results = []
        for t in m.property_transforms:
            value = _transform(props.get(t.property), t, request_time)
            props[t.property] = value
            transform_results.append(value)

        params = {
            "entity_key": key.canonical_string(),
            "kind": key.kind,
            "properties": json.dumps(props, default=_json_default, sort_keys=True),
        }
        if existing is None:
            session.execute(
                f"INSERT INTO {self.table} (entity_key, kind, properties) "
                "VALUES (:entity_key, :kind, :properties)",
                params,
            )
        else:
            session.execute(
                f"UPDATE {self.table} SET kind = :kind, properties = :properties "
                "WHERE entity_key = :entity_key",
                params,
            )
        return MutationResult(key=key, transform_results=transform_results)

    def _load(self, session: StoreSession, key: Key) -> Optional[dict[str, Any]]:
        row = session.fetch_one(
            f"SELECT properties FROM {self.table} WHERE entity_key = :entity_key",
            {"entity_key": key.canonical_string()},
        )
        if row is None:
            return None
        return json.loads(row["properties"])

    def _allocate(self, session: StoreSession, key: Key) -> Key:
        while True:
            candidate = key.with_id(secrets.randbelow(_MAX_ID) + 1)
            if self._load(session, candidate) is None:
                logger.debug("Allocated id for %s", candidate)
                return candidate


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _transform(current: Any, t: TransformDescriptor, request_time: datetime) -> Any:
    if t.kind == TransformKind.SET_TO_SERVER_VALUE:
        return request_time
    if t.kind == TransformKind.INCREMENT:
        return current + t.value if _is_number(current) else t.value
    if t.kind == TransformKind.MAXIMUM:
        return max(current, t.value) if _is_number(current) else t.value
    if t.kind == TransformKind.MINIMUM:
        return min(current, t.value) if _is_number(current) else t.value

    elems = list(current) if isinstance(current, (list, tuple)) else []
    if t.kind == TransformKind.APPEND_MISSING_ELEMENTS:
        for v in t.value:
            if v not in elems:
                elems.append(v)
        return elems
    if t.kind == TransformKind.REMOVE_ALL_FROM_ARRAY:
        return [e for e in elems if e not in t.value]

    raise StoreError(f"Unsupported transform kind: {t.kind}")


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, Key):
        return value.canonical_string()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")

from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine, Result
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import TextClause

from ..errors import StoreError

logger = logging.getLogger(__name__)


class StoreSession:
    """
    One transaction against the local store's engine.

    Commits on clean exit, rolls back if the block raises. Driver failures
    (connect, statement, commit) surface as StoreError, so store callers
    only ever see the dsmutate hierarchy.

    Use as:
        with StoreSession(engine) as session:
            row = session.fetch_one(...)
            session.execute(...)
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._conn: Connection | None = None
        self._tx = None

    def __enter__(self) -> "StoreSession":
        if self._conn is not None:
            raise RuntimeError("StoreSession is already active; nested sessions are not allowed")
        try:
            self._conn = self.engine.connect()
            self._tx = self._conn.begin()
        except SQLAlchemyError as exc:
            self._close()
            raise StoreError(f"could not open store transaction: {exc}") from exc
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._tx is not None:
                if exc_type:
                    self._tx.rollback()
                    logger.debug("Rolled back store transaction after %s", exc_type.__name__)
                else:
                    try:
                        self._tx.commit()
                    except SQLAlchemyError as commit_exc:
                        raise StoreError(f"commit failed: {commit_exc}") from commit_exc
        finally:
            self._close()

        return False

    def _close(self) -> None:
        if self._conn is not None:
            self._conn.close()
        self._conn = None
        self._tx = None

    def _run(self, sql: str | TextClause, params: Mapping[str, Any] | None) -> Result:
        if self._conn is None:
            raise RuntimeError("StoreSession is not active; use within a context manager")
        stmt = text(sql) if isinstance(sql, str) else sql
        try:
            return self._conn.execute(stmt, params or {})
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc

    def execute(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None = None,
    ) -> int:
        """
        Execute a write statement and return the affected row count.
        """
        return int(self._run(sql, params).rowcount)

    def fetch_one(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """
        Execute a SELECT expected to return 0 or 1 row. Raises if more than one row.
        """
        row = self._run(sql, params).mappings().one_or_none()
        if row is None:
            return None
        return dict(row)

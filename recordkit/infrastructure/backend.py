"""
Storage backend boundary.

The finder layer only needs ``execute(statement, params) -> rows`` where each
row is a column-name -> scalar mapping. PsycopgBackend implements it over
PostgreSQL; tests substitute an in-memory double.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional, Protocol, Sequence, runtime_checkable

import psycopg
from psycopg import Connection
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from recordkit.config import get_settings
from recordkit.errors import DatabaseError
from recordkit.infrastructure.db_factory import (
    apply_statement_timeout,
    get_sync_connection,
    get_sync_pool,
)
from recordkit.utils.logging import get_logger

log = get_logger(__name__)

Row = Dict[str, Any]


@runtime_checkable
class StorageBackend(Protocol):
    """Executes one statement and returns every produced row."""

    def execute(self, statement: str, params: Sequence[Any] = ()) -> List[Row]:
        ...


class PsycopgBackend:
    """
    psycopg 3 backend.

    Uses the shared pool unless a pool or DSN override is given; a DSN override
    opens a dedicated connection per statement. Each call is its own
    transaction, committed when the statement succeeds.
    """

    def __init__(
        self,
        pool: Optional[ConnectionPool] = None,
        dsn_override: Optional[str] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self._pool = pool
        self._dsn_override = dsn_override
        if statement_timeout_ms is None:
            statement_timeout_ms = get_settings().db_statement_timeout_ms
        self.statement_timeout_ms = statement_timeout_ms

    @contextmanager
    def _connection(self) -> Generator[Connection, None, None]:
        if self._dsn_override:
            with get_sync_connection(self._dsn_override) as conn:
                yield conn
            return
        pool = self._pool or get_sync_pool()
        with pool.connection() as conn:
            yield conn

    def execute(self, statement: str, params: Sequence[Any] = ()) -> List[Row]:
        bound = list(params)
        log.debug("Executing statement", extra={"statement": statement, "params": bound})
        try:
            with self._connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    apply_statement_timeout(cur, self.statement_timeout_ms)
                    cur.execute(statement, bound or None)
                    rows = cur.fetchall() if cur.description is not None else []
        except psycopg.Error as exc:
            log.error(
                "Statement failed",
                extra={"statement": statement, "params": bound, "error": str(exc)},
            )
            raise DatabaseError(statement, bound, message=str(exc)) from exc
        return rows


def default_backend() -> StorageBackend:
    """Backend used by finders and records when none is supplied."""
    return PsycopgBackend()


__all__ = ["PsycopgBackend", "Row", "StorageBackend", "default_backend"]

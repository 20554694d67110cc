"""Connection handling shared by the repositories."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
import logging
from typing import Iterator

from psycopg import Connection
from psycopg_pool import ConnectionPool

logger = logging.getLogger(__name__)

# (owning Database, connection) of the transaction open on this context
_current_connection: ContextVar[tuple[Database, Connection] | None] = ContextVar(
    "membership_connection", default=None
)


class Database:
    """Hands out pooled connections and scopes them to a transaction.

    Inside ``transaction()`` every ``connection()`` call made on the same
    context receives the same connection, so several repository calls commit
    or roll back as one unit.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def _ambient(self) -> Connection | None:
        current = _current_connection.get()
        if current is None or current[0] is not self:
            return None
        return current[1]

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Yield the ambient transaction's connection, or a fresh pooled one."""
        current = self._ambient()
        if current is not None:
            yield current
            return
        # the pool commits on clean exit and rolls back on error
        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Open a transaction; nested calls join the outermost one."""
        current = self._ambient()
        if current is not None:
            yield current
            return
        with self._pool.connection() as conn:
            token = _current_connection.set((self, conn))
            try:
                yield conn
            finally:
                _current_connection.reset(token)

    def ping(self) -> bool:
        """Return ``True`` when a trivial query round-trips to the server."""
        with self.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                row = cur.fetchone()
        return row is not None and row[0] == 1

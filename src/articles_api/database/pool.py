"""Bounded SQLite connection pool.

The pool hands out at most ``max_connections`` connections at once. A caller
that asks for one while the pool is at its cap gets ``ResourceExhausted``
straight away instead of waiting.
"""

import logging
import sqlite3
import threading
from typing import List, Set

from articles_api.errors import ResourceExhausted

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Thread-safe pool of SQLite connections with a hard cap."""

    def __init__(self, db_path: str, max_connections: int = 4, busy_timeout: float = 5.0):
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self.db_path = db_path
        self.max_connections = max_connections
        # seconds a writer waits on another connection's write lock
        self.busy_timeout = busy_timeout
        self._lock = threading.Lock()
        self._idle: List[sqlite3.Connection] = []
        self._in_use: Set[int] = set()
        self._closed = False

    def _connect(self) -> sqlite3.Connection:
        # isolation_level=None leaves transaction control to explicit BEGIN/COMMIT/ROLLBACK
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.busy_timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        return conn

    @property
    def checked_out(self) -> int:
        with self._lock:
            return len(self._in_use)

    def get_connection(self) -> sqlite3.Connection:
        """Check out a connection, failing fast when none is available."""
        with self._lock:
            if self._closed:
                raise ResourceExhausted("Connection pool is closed")
            if len(self._in_use) >= self.max_connections:
                raise ResourceExhausted(
                    f"All {self.max_connections} database connections are in use"
                )
            conn = self._idle.pop() if self._idle else None
            if conn is None:
                try:
                    conn = self._connect()
                except sqlite3.Error as e:
                    raise ResourceExhausted(f"Cannot open database connection: {e}") from e
            self._in_use.add(id(conn))
            in_use = len(self._in_use)
        logger.debug(f"Checked out connection ({in_use}/{self.max_connections} in use)")
        return conn

    def release(self, conn: sqlite3.Connection) -> None:
        """
        Return a connection to the pool. Releasing twice is an error.

        A transaction the borrower left open is rolled back first. A
        connection whose rollback fails is closed and dropped, and the next
        checkout opens a fresh one.
        """
        with self._lock:
            if id(conn) not in self._in_use:
                raise ValueError("Connection was not checked out from this pool")
            self._in_use.discard(id(conn))
            reusable = not self._closed and self._reset(conn)
            if reusable:
                self._idle.append(conn)
            else:
                conn.close()
            in_use = len(self._in_use)
        logger.debug(f"Released connection ({in_use}/{self.max_connections} in use)")

    def _reset(self, conn: sqlite3.Connection) -> bool:
        if not conn.in_transaction:
            return True
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            logger.warning(f"Dropping connection whose open transaction cannot be rolled back: {e}")
            return False
        logger.warning("Rolled back a transaction left open on a released connection")
        return True

    def ping(self) -> None:
        """Round-trip a trivial query; raises if the database is unreachable."""
        conn = self.get_connection()
        try:
            conn.execute("SELECT 1").fetchone()
        finally:
            self.release(conn)

    def close(self) -> None:
        """Close idle connections; checked-out ones are closed when released."""
        with self._lock:
            self._closed = True
            idle, self._idle = self._idle, []
        for conn in idle:
            conn.close()
        logger.info(f"Connection pool for {self.db_path} closed")

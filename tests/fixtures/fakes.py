"""Test doubles for the object store and the connection pool."""

import sqlite3
import threading
from typing import Any, Callable, Dict, List, Optional

from botocore.exceptions import ClientError

from articles_api.database.pool import ConnectionPool


class FailingS3Client:
    """Wraps a real (moto) S3 client and rejects selected puts.

    ``fail_when`` receives the ``put_object`` keyword arguments.
    """

    def __init__(self, client: Any, fail_when: Callable[[Dict[str, Any]], bool] = lambda kwargs: True):
        self._client = client
        self.fail_when = fail_when
        self.put_calls: List[str] = []

    def put_object(self, **kwargs):
        self.put_calls.append(kwargs["Key"])
        if self.fail_when(kwargs):
            raise ClientError(
                {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}},
                "PutObject",
            )
        return self._client.put_object(**kwargs)

    def __getattr__(self, name):
        return getattr(self._client, name)


class BlockingS3Client(FailingS3Client):
    """Holds every put until ``proceed`` is set; ``entered`` is set on arrival."""

    def __init__(self, client: Any, wait_timeout: float = 10.0):
        super().__init__(client, fail_when=lambda kwargs: False)
        self.entered = threading.Event()
        self.proceed = threading.Event()
        self.wait_timeout = wait_timeout

    def put_object(self, **kwargs):
        self.entered.set()
        self.proceed.wait(self.wait_timeout)
        return super().put_object(**kwargs)


class FlakyConnection:
    """sqlite3 connection proxy that fails one kind of statement."""

    def __init__(self, conn: sqlite3.Connection, fail_on: Optional[str] = None):
        self._conn = conn
        self.fail_on = fail_on

    def execute(self, statement, params=()):
        if self.fail_on and statement.strip().upper().startswith(self.fail_on):
            raise sqlite3.OperationalError(f"{self.fail_on} refused by test")
        return self._conn.execute(statement, params)

    def __getattr__(self, name):
        return getattr(self._conn, name)


class CountingPool(ConnectionPool):
    """Pool that counts releases and can hand out flaky connections."""

    def __init__(
        self,
        db_path: str,
        max_connections: int = 4,
        fail_on: Optional[str] = None,
        busy_timeout: float = 5.0,
    ):
        super().__init__(db_path, max_connections, busy_timeout=busy_timeout)
        self.fail_on = fail_on
        self.release_calls = 0
        self._count_lock = threading.Lock()

    def _connect(self):
        conn = super()._connect()
        if self.fail_on:
            return FlakyConnection(conn, self.fail_on)
        return conn

    def release(self, conn) -> None:
        with self._count_lock:
            self.release_calls += 1
        super().release(conn)

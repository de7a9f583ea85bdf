"""Explicit transaction handle over a single pooled connection."""

import logging
import sqlite3
import uuid
from enum import Enum
from typing import Any, Optional, Sequence

from articles_api.errors import TransactionError

logger = logging.getLogger(__name__)


class TransactionState(str, Enum):
    PENDING = "pending"
    OPEN = "open"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction:
    """Begin/commit/rollback around one connection.

    The handle does not own the connection: whoever checked it out of the
    pool releases it. ``correlation_id`` tags every log line for the request.
    """

    def __init__(self, connection: sqlite3.Connection, correlation_id: Optional[str] = None):
        self.connection = connection
        self.correlation_id = correlation_id or uuid.uuid4().hex
        self.state = TransactionState.PENDING

    def begin(self) -> "Transaction":
        if self.state is not TransactionState.PENDING:
            raise TransactionError(f"Cannot begin a transaction that is {self.state.value}")
        try:
            self.connection.execute("BEGIN")
        except sqlite3.Error as e:
            raise TransactionError(f"Begin rejected: {e}") from e
        self.state = TransactionState.OPEN
        logger.debug(f"[{self.correlation_id}] transaction started")
        return self

    def execute(self, statement: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        """Run a parameterized statement inside the open transaction.

        Driver errors propagate unchanged so the caller can classify them.
        """
        if self.state is not TransactionState.OPEN:
            raise TransactionError(f"Cannot execute in a transaction that is {self.state.value}")
        return self.connection.execute(statement, params)

    def commit(self) -> None:
        if self.state is not TransactionState.OPEN:
            raise TransactionError(f"Cannot commit a transaction that is {self.state.value}")
        try:
            self.connection.execute("COMMIT")
        except sqlite3.Error as e:
            raise TransactionError(f"Commit rejected: {e}") from e
        self.state = TransactionState.COMMITTED
        logger.debug(f"[{self.correlation_id}] transaction committed")

    def rollback(self) -> None:
        """Roll back if a transaction is open; otherwise a no-op."""
        if self.state is not TransactionState.OPEN:
            return
        try:
            # sqlite may already have rolled back on its own (e.g. after a failed COMMIT)
            if self.connection.in_transaction:
                self.connection.execute("ROLLBACK")
        except sqlite3.Error as e:
            raise TransactionError(f"Rollback rejected: {e}") from e
        self.state = TransactionState.ROLLED_BACK
        logger.debug(f"[{self.correlation_id}] transaction rolled back")

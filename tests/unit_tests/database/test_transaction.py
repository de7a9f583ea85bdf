import sqlite3

import pytest

from articles_api.database.local import INSERT_NEW_ARTICLE, get_article
from articles_api.database.transaction import Transaction, TransactionState
from articles_api.errors import TransactionError

ROW = ("abcd1234", "Title", "fred@example.com", "Body", "2024-01-01T00:00:00+00:00", "f00d")


def committed_ids(db_path):
    conn = sqlite3.connect(db_path)
    try:
        return [r[0] for r in conn.execute("SELECT art_id FROM articles")]
    finally:
        conn.close()


def test_transaction__commit_makes_row_visible(pool, db_path):
    conn = pool.get_connection()
    txn = Transaction(conn, correlation_id="req-1").begin()
    txn.execute(INSERT_NEW_ARTICLE, ROW)
    assert committed_ids(db_path) == []

    txn.commit()

    assert txn.state is TransactionState.COMMITTED
    assert committed_ids(db_path) == ["abcd1234"]
    assert get_article(conn, "abcd1234")["title"] == "Title"
    pool.release(conn)


def test_transaction__rollback_discards_row(pool, db_path):
    conn = pool.get_connection()
    txn = Transaction(conn).begin()
    txn.execute(INSERT_NEW_ARTICLE, ROW)

    txn.rollback()

    assert txn.state is TransactionState.ROLLED_BACK
    assert committed_ids(db_path) == []
    assert not conn.in_transaction
    pool.release(conn)


def test_transaction__state_guards(pool):
    conn = pool.get_connection()
    txn = Transaction(conn)

    with pytest.raises(TransactionError):
        txn.commit()
    with pytest.raises(TransactionError):
        txn.execute("SELECT 1")
    # nothing open, nothing to undo
    txn.rollback()
    assert txn.state is TransactionState.PENDING

    txn.begin()
    with pytest.raises(TransactionError):
        txn.begin()
    txn.commit()
    with pytest.raises(TransactionError):
        txn.commit()
    pool.release(conn)


def test_transaction__generates_correlation_id(pool):
    conn = pool.get_connection()
    assert Transaction(conn).correlation_id != Transaction(conn).correlation_id
    pool.release(conn)

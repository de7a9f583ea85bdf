import sqlite3
import threading

import pytest

from articles_api.database.pool import ConnectionPool
from articles_api.errors import ResourceExhausted
from tests.fixtures.fakes import CountingPool


def test_pool__fails_fast_at_cap(db_path):
    pool = ConnectionPool(db_path, max_connections=2)
    first = pool.get_connection()
    second = pool.get_connection()

    with pytest.raises(ResourceExhausted):
        pool.get_connection()

    pool.release(first)
    third = pool.get_connection()
    # released connections are reused
    assert third is first

    pool.release(second)
    pool.release(third)
    assert pool.checked_out == 0
    pool.close()


def test_pool__double_release_is_rejected(db_path):
    pool = ConnectionPool(db_path, max_connections=1)
    conn = pool.get_connection()
    pool.release(conn)

    with pytest.raises(ValueError):
        pool.release(conn)
    pool.close()


def test_pool__closed_pool_refuses_checkout(db_path):
    pool = ConnectionPool(db_path, max_connections=1)
    pool.close()

    with pytest.raises(ResourceExhausted):
        pool.get_connection()


def test_pool__ping(pool):
    pool.ping()
    assert pool.checked_out == 0


def test_pool__cap_holds_under_concurrency(db_path):
    pool = ConnectionPool(db_path, max_connections=3)
    barrier = threading.Barrier(8)
    results = []
    lock = threading.Lock()
    held = []

    def worker():
        barrier.wait()
        try:
            conn = pool.get_connection()
        except ResourceExhausted:
            outcome = "exhausted"
        else:
            outcome = "ok"
            with lock:
                held.append(conn)
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count("ok") == 3
    assert results.count("exhausted") == 5
    for conn in held:
        pool.release(conn)
    pool.close()


def test_pool__rejects_zero_cap(db_path):
    with pytest.raises(ValueError):
        ConnectionPool(db_path, max_connections=0)


def test_pool__release_rolls_back_open_transaction(db_path):
    pool = ConnectionPool(db_path, max_connections=1)
    conn = pool.get_connection()
    conn.execute("BEGIN")
    conn.execute(
        "INSERT INTO articles (art_id, title, email, article, posted, image_url) VALUES (?, ?, ?, ?, ?, ?)",
        ("abcd1234", "t", "e@example.com", "a", "2024-01-01T00:00:00+00:00", "img.png"),
    )

    pool.release(conn)
    reused = pool.get_connection()

    assert reused is conn
    assert not reused.in_transaction
    assert reused.execute("SELECT COUNT(*) FROM articles").fetchone()[0] == 0
    pool.release(reused)
    pool.close()


def test_pool__drops_connection_that_cannot_roll_back(db_path):
    pool = CountingPool(db_path, max_connections=1, fail_on="ROLLBACK")
    conn = pool.get_connection()
    conn.execute("BEGIN")

    pool.release(conn)
    fresh = pool.get_connection()

    assert fresh is not conn
    assert pool.checked_out == 1
    # a new transaction can start on the replacement connection
    fresh.execute("BEGIN")
    fresh.execute("COMMIT")
    pool.release(fresh)
    pool.close()


def test_pool__connections_use_busy_timeout(db_path):
    pool = ConnectionPool(db_path, max_connections=2, busy_timeout=0.1)
    writer = pool.get_connection()
    other = pool.get_connection()
    writer.execute("BEGIN IMMEDIATE")

    with pytest.raises(sqlite3.OperationalError, match="locked"):
        other.execute("BEGIN IMMEDIATE")

    writer.execute("ROLLBACK")
    pool.release(writer)
    pool.release(other)
    pool.close()

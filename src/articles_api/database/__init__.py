"""Relational store: bounded connection pool, explicit transactions, article queries."""

from .pool import ConnectionPool
from .transaction import Transaction, TransactionState

__all__ = [
    'ConnectionPool',
    'Transaction',
    'TransactionState'
]

"""
Database layer.

Connection pool, query executor with transient-error retry, and schema setup.
"""

from .pool import ConnectionPool
from .executor import QueryExecutor, QueryResult
from .local import init_db

__all__ = ['ConnectionPool', 'QueryExecutor', 'QueryResult', 'init_db']

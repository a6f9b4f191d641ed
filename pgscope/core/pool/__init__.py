"""
Connection pool handle and statement helpers.

The pool itself is psycopg_pool.AsyncConnectionPool; PoolManager adds the
OPENING/READY/STOPPED lifecycle around it.
"""

from .connect import QueryResult, cursor_to_dicts, execute
from .health import check_connection
from .manager import PoolManager, PoolState

__all__ = [
    "QueryResult",
    "execute",
    "cursor_to_dicts",
    "check_connection",
    "PoolManager",
    "PoolState",
]

"""
Connection health check for the pool.
"""

from .connect import QueryResult, execute
from .manager import PoolManager


async def check_connection(pool: PoolManager) -> QueryResult:
    """
    Borrow a connection and run SELECT 1. Errors from the pool or the driver propagate.
    """
    async with pool.connection() as conn:
        return await execute(conn, "SELECT 1")

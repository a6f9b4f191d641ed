"""
Connection pool handle.

Wraps psycopg_pool.AsyncConnectionPool with an explicit lifecycle
(OPENING -> READY -> STOPPED). Sizing, health-check on checkout, max-age
and idle eviction are delegated to psycopg_pool; this class only passes the
configuration through and guards use outside the READY state.
"""

import enum
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool

from pgscope.core.config import PostgresSettings
from pgscope.core.errors import PoolStateError

_log = logging.getLogger(__name__)


class PoolState(str, enum.Enum):
    OPENING = "opening"
    READY = "ready"
    STOPPED = "stopped"


def _on_reconnect_failed(pool: Any) -> None:
    _log.warning("Error on PostgreSQL connection pool %s: reconnect failed", pool.name)


class PoolManager:
    """Owns one AsyncConnectionPool built from PostgresSettings."""

    def __init__(self, settings: PostgresSettings, *, name: str = "pgscope") -> None:
        self._settings = settings
        self._state = PoolState.OPENING
        self._pool = AsyncConnectionPool(
            settings.conninfo(),
            name=name,
            kwargs={"autocommit": True},
            min_size=settings.min_size,
            max_size=settings.max_size,
            timeout=settings.connect_timeout,
            max_idle=settings.max_idle,
            max_lifetime=settings.max_lifetime,
            configure=self._configure if settings.statement_timeout else None,
            check=AsyncConnectionPool.check_connection if settings.check_on_checkout else None,
            reconnect_failed=_on_reconnect_failed,
            open=False,
        )

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def pool(self) -> AsyncConnectionPool:
        return self._pool

    async def open(self) -> None:
        """Open the pool and wait until min_size connections are available."""
        if self._state is PoolState.STOPPED:
            raise PoolStateError("Connection pool has been stopped and cannot be reopened")
        if self._state is PoolState.READY:
            return
        await self._pool.open(wait=True, timeout=self._settings.connect_timeout)
        self._state = PoolState.READY
        _log.debug("Connection pool %s ready", self._pool.name)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AsyncConnection]:
        """Borrow one connection; it is returned to the pool on every exit path."""
        self._ensure_ready()
        async with self._pool.connection() as conn:
            yield conn

    async def close(self) -> None:
        if self._state is PoolState.STOPPED:
            return
        self._state = PoolState.STOPPED
        await self._pool.close()
        _log.debug("Connection pool %s stopped", self._pool.name)

    def stats(self) -> dict[str, int]:
        """Return pool statistics for monitoring."""
        return dict(self._pool.get_stats())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_ready(self) -> None:
        if self._state is not PoolState.READY:
            raise PoolStateError(f"Connection pool is {self._state.value}, not ready")

    async def _configure(self, conn: AsyncConnection) -> None:
        timeout_ms = int(self._settings.statement_timeout * 1000)
        await conn.execute(f"SET statement_timeout = {timeout_ms}")

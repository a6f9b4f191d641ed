"""
Pg: the client handle.

One Pg owns one connection pool. It is itself a pooled execution context
(``query`` / ``named_query`` borrow a connection per statement) and hands out
connection- and transaction-scoped contexts::

    pg = await init_pg(PgConfig(sql_path="sql"))
    rows = (await pg.named_query("farms-by-score", {"minScore": 5})).rows

    async with pg.transaction() as tx:
        await tx.query("INSERT INTO farms (name) VALUES ('Sty')")

    await pg.stop()
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from contextlib import AbstractAsyncContextManager
from typing import Any, TypeVar

from psycopg_pool import AsyncConnectionPool

from pgscope.core.config import PgConfig
from pgscope.core.migrations import MigrationRunner
from pgscope.core.pool import PoolManager, QueryResult, check_connection
from pgscope.engines.sql import (
    BulkLoader,
    IsolationLevel,
    NamedQueryLoader,
    PoolContext,
    ScopedContext,
    SQLTemplateEngine,
    TransactionCoordinator,
)
from pgscope.engines.sql.template_engine import ParamValue

_log = logging.getLogger(__name__)

T = TypeVar("T")


class Pg(PoolContext):
    def __init__(self, config: PgConfig) -> None:
        self.config = config
        engine = SQLTemplateEngine()
        pool = PoolManager(config.postgres)
        loader = NamedQueryLoader(config.sql_path, config.sql_extension)
        super().__init__(pool, loader, engine)
        self._bulk_loader = BulkLoader(pool, engine)
        self._coordinator = TransactionCoordinator(pool, loader, self._bulk_loader, engine)
        self._migrations = MigrationRunner(config.migrations, config.postgres)

    async def open(self) -> "Pg":
        await self._pool.open()
        return self

    async def stop(self) -> None:
        """Close the pool gracefully; the handle cannot be reopened."""
        await self._pool.close()

    async def __aenter__(self) -> "Pg":
        return await self.open()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    def connection(self) -> AbstractAsyncContextManager[ScopedContext]:
        return self._coordinator.connection()

    def transaction(
        self,
        level: IsolationLevel | str = IsolationLevel.READ_COMMITTED,
    ) -> AbstractAsyncContextManager[ScopedContext]:
        return self._coordinator.transaction(level)

    async def with_connection(self, fn: Callable[[ScopedContext], Awaitable[T]]) -> T:
        return await self._coordinator.with_connection(fn)

    async def with_transaction(
        self,
        fn: Callable[[ScopedContext], Awaitable[T]],
        level: IsolationLevel | str = IsolationLevel.READ_COMMITTED,
    ) -> T:
        return await self._coordinator.with_transaction(fn, level)

    # ------------------------------------------------------------------
    # Bulk load, migrations, health
    # ------------------------------------------------------------------

    async def copy_to_table(
        self,
        schema_name: str,
        table_name: str,
        source: Any,
        context: ScopedContext | None = None,
    ) -> None:
        await self._bulk_loader.copy_to_table(schema_name, table_name, source, context)

    async def run_migrations(self) -> None:
        await self._migrations.run()

    async def check_connection(self) -> QueryResult:
        return await check_connection(self._pool)

    def render(self, query_template: str, params: Mapping[str, ParamValue] | None = None) -> str:
        return self._engine.render(query_template, params)

    def stats(self) -> dict[str, int]:
        return self._pool.stats()

    def get_connection_pool(self) -> AsyncConnectionPool:
        """Escape hatch: the underlying psycopg_pool pool."""
        return self._pool.pool


async def init_pg(config: PgConfig) -> Pg:
    """Create a Pg handle and wait for its pool to be ready."""
    pg = Pg(config)
    await pg.open()
    _log.debug("pgscope client ready (%s:%s)", config.postgres.host, config.postgres.port)
    return pg

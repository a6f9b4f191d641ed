"""
Execution contexts: where a query runs.

- PoolContext borrows a pooled connection for each statement and returns it
  straight away; independent calls may run on different connections.
- ScopedContext is bound to one connection (a reserved connection or an
  open transaction) for its whole life, so its statements run in order on
  that connection and see each other's uncommitted writes. Once its scope
  ends it is closed and every call raises ContextClosedError.

named_query() on either context loads the template, renders it and runs the
result through query() on the same context.
"""

import abc
from collections.abc import Mapping
from typing import Any

from pgscope.core.errors import ContextClosedError
from pgscope.core.pool import PoolManager, QueryResult, execute
from pgscope.engines.sql.copy import BulkLoader
from pgscope.engines.sql.loader import NamedQueryLoader
from pgscope.engines.sql.template_engine import ParamValue, SQLTemplateEngine


class ExecutionContext(abc.ABC):
    def __init__(self, loader: NamedQueryLoader, engine: SQLTemplateEngine | None = None) -> None:
        self._loader = loader
        self._engine = engine or SQLTemplateEngine()

    @abc.abstractmethod
    async def query(self, query_text: str) -> QueryResult:
        """Run *query_text* as-is."""

    async def named_query(
        self,
        query_name: str,
        params: Mapping[str, ParamValue] | None = None,
    ) -> QueryResult:
        """Load ``<sql_path>/<query_name>.sql``, render it with *params*, run it."""
        template = self._loader.load(query_name)
        query_text = self._engine.render(template, params or {})
        return await self.query(query_text)


class PoolContext(ExecutionContext):
    """Runs each statement on its own pooled connection."""

    def __init__(
        self,
        pool: PoolManager,
        loader: NamedQueryLoader,
        engine: SQLTemplateEngine | None = None,
    ) -> None:
        super().__init__(loader, engine)
        self._pool = pool

    async def query(self, query_text: str) -> QueryResult:
        async with self._pool.connection() as conn:
            return await execute(conn, query_text)


class ScopedContext(ExecutionContext):
    """Runs every statement on one bound connection."""

    def __init__(
        self,
        conn: Any,
        loader: NamedQueryLoader,
        bulk_loader: BulkLoader,
        engine: SQLTemplateEngine | None = None,
        *,
        label: str = "connection",
    ) -> None:
        super().__init__(loader, engine)
        self._conn = conn
        self._bulk_loader = bulk_loader
        self._label = label
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def connection(self) -> Any:
        if self._closed:
            raise ContextClosedError(
                f"This {self._label} context has ended; its connection was released"
            )
        return self._conn

    def close(self) -> None:
        self._closed = True

    async def query(self, query_text: str) -> QueryResult:
        return await execute(self.connection, query_text)

    async def copy_to_table(self, schema_name: str, table_name: str, source: Any) -> None:
        await self._bulk_loader.copy_to_table(schema_name, table_name, source, context=self)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<ScopedContext {self._label} {state}>"

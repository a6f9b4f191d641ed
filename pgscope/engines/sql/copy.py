"""
Bulk load: stream bytes into a table with ``COPY ... FROM STDIN``.

The source is pulled chunk by chunk and written into psycopg's Copy object.
Whichever side fails first (the source while producing a chunk, or the
server while accepting one) unwinds the loop. Leaving the Copy block with an
exception sends CopyFail, so the server discards the partial load, and the
first error is what the caller sees.
"""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import TYPE_CHECKING, Any

from pgscope.core.pool import PoolManager
from pgscope.engines.sql.template_engine import SQLTemplateEngine

if TYPE_CHECKING:
    from pgscope.engines.sql.executor import ScopedContext

_log = logging.getLogger(__name__)

_COPY_TEMPLATE = "COPY %I:schema.%I:table FROM STDIN WITH NULL AS ''"
_DEFAULT_CHUNK_SIZE = 64 * 1024


async def _iter_chunks(source: Any, chunk_size: int) -> AsyncIterator[bytes | str]:
    """Yield chunks from an async iterable, a file-like object or an iterable."""
    if hasattr(source, "__aiter__"):
        try:
            async for chunk in source:
                yield chunk
        finally:
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                await aclose()
        return

    if hasattr(source, "read"):
        read = source.read
        blocking = not inspect.iscoroutinefunction(read)
        while True:
            # blocking reads (files, pipes) run in a worker thread
            chunk = await asyncio.to_thread(read, chunk_size) if blocking else await read(chunk_size)
            if inspect.isawaitable(chunk):
                chunk = await chunk
            if not chunk:
                break
            yield chunk
        _log.debug("Source stream is done.")
        return

    for chunk in source:
        yield chunk


class BulkLoader:
    """Runs COPY FROM STDIN on a pooled connection or on a caller's scoped one."""

    def __init__(
        self,
        pool: PoolManager,
        engine: SQLTemplateEngine | None = None,
        *,
        chunk_size: int = _DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._pool = pool
        self._engine = engine or SQLTemplateEngine()
        self._chunk_size = chunk_size

    async def copy_to_table(
        self,
        schema_name: str,
        table_name: str,
        source: Any,
        context: "ScopedContext | None" = None,
    ) -> None:
        """
        Load *source* into ``schema_name.table_name``; empty fields become NULL.

        - context: reuse this scope's connection (e.g. inside a transaction);
          its release stays with the caller. Without it a pooled connection
          is borrowed for the copy and returned afterwards.
        """
        copy_sql = self._engine.render(_COPY_TEMPLATE, {"schema": schema_name, "table": table_name})

        if context is not None:
            await self._copy(context.connection, copy_sql, source)
            return

        async with self._pool.connection() as conn:
            await self._copy(conn, copy_sql, source)

    async def _copy(self, conn: Any, copy_sql: str, source: Any) -> None:
        _log.debug(copy_sql)
        try:
            async with aclosing(_iter_chunks(source, self._chunk_size)) as chunks:
                async with conn.cursor() as cur:
                    async with cur.copy(copy_sql) as copy:
                        async for chunk in chunks:
                            await copy.write(chunk)
        except Exception as e:
            e.add_note(f"query: {copy_sql}")
            raise
        _log.debug("DB stream is done.")

"""
Connection and transaction scopes.

A transaction moves IDLE -> ACTIVE -> COMMITTED | ROLLED_BACK -> RELEASED:

- entry: borrow a connection, BEGIN TRANSACTION ISOLATION LEVEL <level>
- body: the caller works through a ScopedContext bound to that connection
- exit: COMMIT if the body finished, ROLLBACK if it raised (cancellation
  included) or if COMMIT failed; then the context is closed and the
  connection goes back to the pool, exactly once.

When ROLLBACK itself fails, the body's exception is still the one raised;
the rollback error is logged and attached to it as a note. The pool
discards a connection left in a broken state.
"""

import enum
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from pgscope.core.pool import PoolManager, execute
from pgscope.engines.sql.copy import BulkLoader
from pgscope.engines.sql.executor import ScopedContext
from pgscope.engines.sql.loader import NamedQueryLoader
from pgscope.engines.sql.template_engine import SQLTemplateEngine

_log = logging.getLogger(__name__)

T = TypeVar("T")


class IsolationLevel(str, enum.Enum):
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"

    @classmethod
    def _missing_(cls, value: object) -> "IsolationLevel | None":
        # accept "read committed", "REPEATABLE_READ", ...
        if isinstance(value, str):
            normalized = " ".join(value.replace("_", " ").split()).upper()
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class TransactionState(str, enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    RELEASED = "released"


class Transaction:
    """BEGIN/COMMIT/ROLLBACK bracket around one ScopedContext."""

    def __init__(self, context: ScopedContext, level: IsolationLevel) -> None:
        self.context = context
        self.level = level
        self.state = TransactionState.IDLE

    async def begin(self) -> None:
        self._expect(TransactionState.IDLE)
        await self._issue(f"BEGIN TRANSACTION ISOLATION LEVEL {self.level.value}")
        self.state = TransactionState.ACTIVE

    async def commit(self) -> None:
        self._expect(TransactionState.ACTIVE)
        await self._issue("COMMIT")
        self.state = TransactionState.COMMITTED

    async def rollback(self, cause: BaseException) -> None:
        """Roll back after *cause*. A rollback failure is attached to *cause*, not raised."""
        self._expect(TransactionState.ACTIVE)
        try:
            await self._issue("ROLLBACK")
        except Exception as rb_err:
            _log.error("ROLLBACK failed while handling %r", cause, exc_info=True)
            cause.add_note(f"ROLLBACK also failed: {rb_err!r}")
        self.state = TransactionState.ROLLED_BACK

    def release(self) -> None:
        self.context.close()
        self.state = TransactionState.RELEASED

    def _expect(self, state: TransactionState) -> None:
        if self.state is not state:
            raise RuntimeError(f"Transaction is {self.state.value}, expected {state.value}")

    async def _issue(self, sql: str) -> None:
        await execute(self.context.connection, sql)


class TransactionCoordinator:
    """Hands out connection- and transaction-scoped contexts from the pool."""

    def __init__(
        self,
        pool: PoolManager,
        loader: NamedQueryLoader,
        bulk_loader: BulkLoader,
        engine: SQLTemplateEngine | None = None,
    ) -> None:
        self._pool = pool
        self._loader = loader
        self._bulk_loader = bulk_loader
        self._engine = engine or SQLTemplateEngine()

    def _scoped(self, conn: Any, label: str) -> ScopedContext:
        return ScopedContext(conn, self._loader, self._bulk_loader, self._engine, label=label)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[ScopedContext]:
        """Reserve one pooled connection for the block."""
        async with self._pool.connection() as conn:
            ctx = self._scoped(conn, "connection")
            try:
                yield ctx
            finally:
                ctx.close()

    @asynccontextmanager
    async def transaction(
        self,
        level: IsolationLevel | str = IsolationLevel.READ_COMMITTED,
    ) -> AsyncIterator[ScopedContext]:
        """Run the block inside BEGIN ... COMMIT, rolling back on any exception."""
        isolation = IsolationLevel(level)
        async with self._pool.connection() as conn:
            tx = Transaction(self._scoped(conn, "transaction"), isolation)
            try:
                await tx.begin()
                try:
                    yield tx.context
                except BaseException as e:
                    await tx.rollback(e)
                    raise
                try:
                    await tx.commit()
                except BaseException as e:
                    await tx.rollback(e)
                    raise
            finally:
                tx.release()

    async def with_connection(self, fn: Callable[[ScopedContext], Awaitable[T]]) -> T:
        async with self.connection() as ctx:
            return await fn(ctx)

    async def with_transaction(
        self,
        fn: Callable[[ScopedContext], Awaitable[T]],
        level: IsolationLevel | str = IsolationLevel.READ_COMMITTED,
    ) -> T:
        async with self.transaction(level) as ctx:
            return await fn(ctx)

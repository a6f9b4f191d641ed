"""
Statement execution helpers on a single psycopg AsyncConnection.

No parameter binding happens here: the SQL text is final (already rendered).
"""

import logging
from dataclasses import dataclass, field
from typing import Any

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryResult:
    """Rows (as dicts) and command metadata for one executed statement."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)
    rowcount: int = -1
    status: str | None = None


async def cursor_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert the current result of *cursor* to a list of dicts."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in await cursor.fetchall()]


async def execute(conn: Any, sql: str) -> QueryResult:
    """
    Run *sql* on *conn* and collect its result.

    Driver errors propagate unchanged apart from a note carrying the SQL text.
    """
    _log.debug(sql)
    try:
        async with conn.cursor() as cur:
            await cur.execute(sql)
            rows = await cursor_to_dicts(cur)
            columns = [d[0] for d in cur.description] if cur.description else []
            return QueryResult(
                rows=rows,
                columns=columns,
                rowcount=cur.rowcount if cur.rowcount is not None else -1,
                status=cur.statusmessage,
            )
    except Exception as e:
        e.add_note(f"query: {sql}")
        raise

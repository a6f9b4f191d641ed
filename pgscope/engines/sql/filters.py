"""
Escaping for SQL templates: identifiers, literals and raw text.

Every value substituted into a query passes through one of the three
functions registered in ``SQL_FORMATTERS``; ``format_sql`` dispatches on the
marker letter. Output matches the quoting rules of pg-format so templates
written for it render identically.
"""

import re
from typing import Any

from pgscope.core.errors import InvalidParameterError, TemplateError

# Single-quote escape for SQL strings
_SQL_QUOTE_ESCAPE = str.maketrans({"'": "''"})
_SQL_IDENT_ESCAPE = str.maketrans({'"': '""'})

_BARE_IDENT = re.compile(r"^[a-z_][a-z0-9_$]*$")

_MARKER = re.compile(r"%(%|[ILs])")

# PostgreSQL reserved key words (cannot be used unquoted as identifiers)
RESERVED_WORDS = frozenset(
    """
    all analyse analyze and any array as asc asymmetric authorization binary
    both case cast check collate collation column concurrently constraint
    create cross current_catalog current_date current_role current_schema
    current_time current_timestamp current_user default deferrable desc
    distinct do else end except false fetch for foreign freeze from full grant
    group having ilike in initially inner intersect into is isnull join
    lateral leading left like limit localtime localtimestamp natural not
    notnull null offset on only or order outer overlaps placing primary
    references returning right select session_user similar some symmetric
    system_user table tablesample then to trailing true union unique user
    using variadic verbose when where window with
    """.split()
)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def quote_ident(value: Any) -> str:
    """
    Quote an SQL identifier. Plain lower-case names that are not reserved
    words pass through bare; everything else is double-quoted.
    None is rejected: an identifier never renders as empty or NULL.
    """
    if value is None:
        raise InvalidParameterError("SQL identifier cannot be null or undefined")
    s = str(value)
    if _BARE_IDENT.match(s) and s not in RESERVED_WORDS:
        return s
    return '"' + s.translate(_SQL_IDENT_ESCAPE) + '"'


def quote_literal(value: Any) -> str:
    """
    Quote an SQL literal. None -> NULL; anything else (numbers included) is
    single-quoted. Backslashes switch to an E'' escape string.
    """
    if value is None:
        return "NULL"
    s = str(value).translate(_SQL_QUOTE_ESCAPE)
    if "\\" in s:
        return "E'" + s.replace("\\", "\\\\") + "'"
    return f"'{s}'"


def sql_raw(value: Any) -> str:
    """Pass a value through unescaped. None -> empty string.

    NEVER use on untrusted user input.
    """
    if value is None:
        return ""
    return str(value)


SQL_FORMATTERS: dict[str, Any] = {
    "I": quote_ident,
    "L": quote_literal,
    "s": sql_raw,
}


def format_sql(fmt: str, *values: Any) -> str:
    """
    Positional formatter: each ``%I``, ``%L`` or ``%s`` in *fmt* consumes the
    next value and renders it with the matching formatter; ``%%`` is a
    literal percent sign.
    """
    it = iter(values)

    def _sub(m: re.Match[str]) -> str:
        marker = m.group(1)
        if marker == "%":
            return "%"
        try:
            value = next(it)
        except StopIteration:
            raise TemplateError(f"Too few arguments for SQL format string: {fmt!r}") from None
        return SQL_FORMATTERS[marker](value)

    return _MARKER.sub(_sub, fmt)

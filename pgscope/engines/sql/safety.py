"""
Static analysis for SQL templates: flag raw placeholders.

``%I:`` and ``%L:`` placeholders are always escaped. ``%s:`` placeholders are
substituted verbatim, so they are safe only for values the query author
controls. This check lists every raw placeholder so they can be reviewed.

Usage::

    warnings = check_sql_template_safety(template_content)
    # [{"variable": "orderBy", "line": 3, "message": "..."}]
"""

from typing import Any

from pgscope.engines.sql.parser import PLACEHOLDER


def check_sql_template_safety(template: str) -> list[dict[str, Any]]:
    """Return one warning per ``%s:name`` placeholder.

    Each warning is a dict with ``variable``, ``line``, and ``message`` keys.
    An empty list means every substitution is escaped.
    """
    warnings: list[dict[str, Any]] = []

    for line_no, line_text in enumerate(template.split("\n"), start=1):
        for match in PLACEHOLDER.finditer(line_text):
            sigil, name = match.groups()
            if sigil != "s":
                continue
            warnings.append(
                {
                    "variable": name,
                    "line": line_no,
                    "message": (
                        f"'%s:{name}' is substituted without escaping. "
                        f"Use %I:{name} for identifiers or %L:{name} for values "
                        f"unless the value never comes from user input."
                    ),
                }
            )

    return warnings

"""
Exceptions raised by pgscope itself.

Driver errors (psycopg.Error and subclasses) are never wrapped; they reach
the caller with their original type and cause.
"""

from collections.abc import Iterable


def _preview(template: str, limit: int = 500) -> str:
    return template[:limit] + "..." if len(template) > limit else template


class PgScopeError(Exception):
    """Base class for pgscope errors."""


class TemplateError(PgScopeError, ValueError):
    """A query template could not be rendered with the given parameters."""


class MissingParameterError(TemplateError):
    """The template references names that are absent from the parameters."""

    def __init__(self, names: Iterable[str], template: str) -> None:
        self.names = sorted(set(names))
        self.template = template
        super().__init__(
            f"SQL template parameter(s) missing: {', '.join(self.names)}. "
            f"Template preview:\n{_preview(template)}"
        )


class InvalidParameterError(TemplateError):
    """A parameter value (or key) is not allowed."""


class NoTemplateDirectoryError(PgScopeError):
    def __init__(self) -> None:
        super().__init__(
            "Cannot run named queries: no sql_path configured. "
            "Pass sql_path when creating the client."
        )


class TemplateNotFoundError(PgScopeError, LookupError):
    def __init__(self, name: str, path: str) -> None:
        self.name = name
        self.path = path
        super().__init__(f"Named query {name!r} not found (looked in {path}).")


class ContextClosedError(PgScopeError, RuntimeError):
    """An execution context was used after its connection scope ended."""


class PoolStateError(PgScopeError, RuntimeError):
    """The connection pool is not in a state that allows the operation."""


class MigrationConfigError(PgScopeError):
    """Migrations were requested without a usable configuration."""

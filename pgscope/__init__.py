"""
pgscope: PostgreSQL access with pooled, connection and transaction scopes
and safe ``%I:`` / ``%L:`` / ``%s:`` named-query templates.
"""

from pgscope.client import Pg, init_pg
from pgscope.core.config import MigrationSettings, PgConfig, PostgresSettings
from pgscope.core.errors import (
    ContextClosedError,
    InvalidParameterError,
    MigrationConfigError,
    MissingParameterError,
    NoTemplateDirectoryError,
    PgScopeError,
    PoolStateError,
    TemplateError,
    TemplateNotFoundError,
)
from pgscope.core.pool import QueryResult
from pgscope.engines.sql import IsolationLevel, ParameterBag, ScopedContext, render

__all__ = [
    "Pg",
    "init_pg",
    "PgConfig",
    "PostgresSettings",
    "MigrationSettings",
    "QueryResult",
    "ScopedContext",
    "IsolationLevel",
    "ParameterBag",
    "render",
    "PgScopeError",
    "TemplateError",
    "MissingParameterError",
    "InvalidParameterError",
    "NoTemplateDirectoryError",
    "TemplateNotFoundError",
    "ContextClosedError",
    "PoolStateError",
    "MigrationConfigError",
]

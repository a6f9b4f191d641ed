"""
SQL template engine, execution contexts and transaction scopes.

Exports: SQLTemplateEngine, ParameterBag, render, parse_parameters,
NamedQueryLoader, ExecutionContext, PoolContext, ScopedContext,
TransactionCoordinator, IsolationLevel, BulkLoader.
"""

from pgscope.engines.sql.copy import BulkLoader
from pgscope.engines.sql.executor import ExecutionContext, PoolContext, ScopedContext
from pgscope.engines.sql.loader import NamedQueryLoader
from pgscope.engines.sql.parser import parse_parameters
from pgscope.engines.sql.template_engine import ParameterBag, SQLTemplateEngine, render
from pgscope.engines.sql.transaction import (
    IsolationLevel,
    Transaction,
    TransactionCoordinator,
    TransactionState,
)

__all__ = [
    "SQLTemplateEngine",
    "ParameterBag",
    "render",
    "parse_parameters",
    "NamedQueryLoader",
    "ExecutionContext",
    "PoolContext",
    "ScopedContext",
    "Transaction",
    "TransactionCoordinator",
    "TransactionState",
    "IsolationLevel",
    "BulkLoader",
]

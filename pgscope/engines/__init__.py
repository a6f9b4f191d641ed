"""
Engines: SQL templates, execution contexts, transactions and bulk load.
"""

from pgscope.engines.sql import (
    BulkLoader,
    SQLTemplateEngine,
    TransactionCoordinator,
    parse_parameters,
    render,
)

__all__ = [
    "SQLTemplateEngine",
    "parse_parameters",
    "render",
    "TransactionCoordinator",
    "BulkLoader",
]

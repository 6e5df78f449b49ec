"""
Observability package for the recurrence engine.

Provides structured JSON logging with rule and query correlation IDs.
"""

from .logging import StructuredLogger, configure_logging, set_rule_context, generate_query_id

__all__ = [
    "StructuredLogger",
    "configure_logging",
    "set_rule_context",
    "generate_query_id",
]

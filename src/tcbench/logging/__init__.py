"""Structured logging for the transcode benchmark.

Provides configurable logging with JSON format support and file rotation,
plus case context injection so every record names the running case.
"""

from tcbench.logging.config import configure_logging
from tcbench.logging.context import (
    CaseContextFilter,
    case_context,
    clear_case_context,
    get_case_context,
    set_case_context,
)
from tcbench.logging.handlers import JSONFormatter

__all__ = [
    "CaseContextFilter",
    "JSONFormatter",
    "case_context",
    "clear_case_context",
    "configure_logging",
    "get_case_context",
    "set_case_context",
]

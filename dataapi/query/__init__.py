"""
Query building module for the tabular data API.

This module turns request parameters into a query string by filling the
filter/order/limit/offset slots of a table template or a raw query.
"""

from .builder import (
    DEFAULT_PAGE_SIZE,
    NAN_TEXT,
    PLACEHOLDERS,
    QueryParts,
    build_query,
    parse_int,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "NAN_TEXT",
    "PLACEHOLDERS",
    "QueryParts",
    "build_query",
    "parse_int",
]

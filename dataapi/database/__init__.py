"""
Query service access for the tabular data API.

This module sends built queries to BigQuery over its REST protocol.
"""

from .bigquery import (
    QueryServiceError,
    _query_request_body,
    _run_query,
)

__all__ = [
    "QueryServiceError",
    "_query_request_body",
    "_run_query",
]

"""
Result conversion for the tabular data API.

This module reads the query service's schema-tagged rows into typed cells
and converts them into plain nested JSON keyed by entity name.
"""

from .models import (
    RECORD,
    FieldMode,
    FieldDescriptor,
    FieldWrapper,
    RepeatedValue,
    SingleValue,
    ResultPage,
    classify_cell,
    parse_fields,
    parse_result_page,
)
from .converter import (
    NEXT_PAGE_TOKEN_KEY,
    SchemaMismatchError,
    convert_cell,
    convert_page,
    convert_response,
    next_page_token,
)

__all__ = [
    "RECORD",
    "FieldMode",
    "FieldDescriptor",
    "FieldWrapper",
    "RepeatedValue",
    "SingleValue",
    "ResultPage",
    "classify_cell",
    "parse_fields",
    "parse_result_page",
    "NEXT_PAGE_TOKEN_KEY",
    "SchemaMismatchError",
    "convert_cell",
    "convert_page",
    "convert_response",
    "next_page_token",
]

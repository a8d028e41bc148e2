from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Union
import logging

from ..query import parse_int
from .models import (
    CELL_TYPES,
    Cell,
    FieldDescriptor,
    FieldWrapper,
    RepeatedValue,
    ResultPage,
    SingleValue,
    parse_result_page,
)

log = logging.getLogger("dataapi.results")

NEXT_PAGE_TOKEN_KEY = "next_page_token"
FIRST_NEXT_PAGE_TOKEN = 2


class SchemaMismatchError(IndexError):
    """A row carries more cells than its schema level has fields."""


def _is_empty_value(cell: Cell) -> bool:
    return (
        isinstance(cell, SingleValue)
        and not isinstance(cell.value, CELL_TYPES)
        and cell.value in (None, "")
    )


def _convert_record(cell: FieldWrapper, fields: Sequence[FieldDescriptor]) -> Dict[str, Any]:
    record: Dict[str, Any] = {}
    for idx, sub in enumerate(cell.cells):
        if idx >= len(fields):
            raise SchemaMismatchError(
                f"Row has {len(cell.cells)} cells but schema has {len(fields)} fields"
            )
        d = fields[idx]
        if not d.is_record:
            record[d.name] = sub.wire_value
        elif d.is_repeated:
            if _is_empty_value(sub):
                # Null or empty repeated records are not emitted.
                continue
            record[d.name] = convert_cell(sub, d.fields)
        else:
            # Non-repeated RECORD fields are not emitted.
            continue
    return record


def convert_cell(cell: Cell, fields: Sequence[FieldDescriptor]) -> Any:
    """
    Convert one tagged cell against the field list of its level.

    Returns a dict for a field wrapper, a list for a repeated value, and
    whatever the inner value converts to for a single value.
    """
    if isinstance(cell, FieldWrapper):
        return _convert_record(cell, fields)

    if isinstance(cell, RepeatedValue):
        out: List[Any] = []
        for item in cell.items:
            converted = convert_cell(item, fields)
            if isinstance(converted, list):
                out.extend(converted)
            else:
                out.append(converted)
        return out

    if isinstance(cell, SingleValue):
        if isinstance(cell.value, CELL_TYPES):
            return convert_cell(cell.value, fields)
        return cell.value

    raise TypeError(f"Not a result cell: {cell!r}")


def next_page_token(page_token: Optional[str]) -> Optional[int]:
    """
    `page_token + 1` when a token was given, else 2. A token with no
    leading integer gives None.
    """
    if not page_token:
        return FIRST_NEXT_PAGE_TOKEN
    current = parse_int(page_token)
    if current is None:
        return None
    return current + 1


def convert_page(
    page: ResultPage,
    entity_name: str,
    page_token: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Convert every row of `page` and wrap them under `entity_name` together
    with the next page token.
    """
    rows = [convert_cell(row, page.fields) for row in page.rows]
    log.debug("converted %d rows for %s", len(rows), entity_name)

    response: Dict[str, Any] = {}
    response[entity_name] = rows
    response[NEXT_PAGE_TOKEN_KEY] = next_page_token(page_token)
    return response


def convert_response(
    payload: Union[str, bytes, Dict[str, Any]],
    entity_name: str,
    page_token: Optional[str] = None,
) -> Dict[str, Any]:
    """Parse a raw query-service reply and convert it in one step."""
    return convert_page(parse_result_page(payload), entity_name, page_token)


__all__ = [
    "NEXT_PAGE_TOKEN_KEY",
    "SchemaMismatchError",
    "convert_cell",
    "convert_page",
    "convert_response",
    "next_page_token",
]

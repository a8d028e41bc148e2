from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Optional
import logging
import re

log = logging.getLogger("dataapi.query")

DEFAULT_PAGE_SIZE = "10"
NAN_TEXT = "NaN"

# Statement used when the caller names a table instead of supplying a query.
TABLE_TEMPLATE = "SELECT * FROM {table} %filter% %orderBy% %pageSize% %pageToken%"

_LEADING_INT_RE = re.compile(r"^\s*([+-]?[0-9]+)")


def parse_int(text: Optional[str]) -> Optional[int]:
    """
    Parse the leading integer of `text`, ignoring whatever follows it.
      - '12'     -> 12
      - ' -3px'  -> -3
      - 'abc'    -> None (not a number)
    """
    if text is None:
        return None
    m = _LEADING_INT_RE.match(str(text))
    if not m:
        return None
    return int(m.group(1))


def _offset_text(page_size: str, page_token: str) -> str:
    size = parse_int(page_size)
    token = parse_int(page_token)
    if size is None or token is None:
        return NAN_TEXT
    return str(size * (token - 1))


@dataclass(frozen=True)
class QueryParts:
    """
    The four clause fragments substituted into a statement. Each field is
    bound to the placeholder token it replaces.
    """
    filter: str = ""
    order: str = ""
    limit: str = ""
    offset: str = ""

    @classmethod
    def from_params(
        cls,
        filter: Optional[str] = None,
        order_by: Optional[str] = None,
        page_size: Optional[str] = None,
        page_token: Optional[str] = None,
    ) -> "QueryParts":
        # The default size only feeds the offset; LIMIT needs an explicit size.
        size_for_offset = page_size or DEFAULT_PAGE_SIZE
        return cls(
            filter=f"WHERE {filter}" if filter else "",
            order=f"ORDER BY {order_by}" if order_by else "",
            limit=f"LIMIT {page_size}" if page_size else "",
            offset=f"OFFSET {_offset_text(size_for_offset, page_token)}" if page_token else "",
        )

    def apply(self, statement: str) -> str:
        """Replace the first occurrence of every placeholder with its clause."""
        out = statement
        for f in fields(self):
            out = out.replace(PLACEHOLDERS[f.name], getattr(self, f.name), 1)
        return out


PLACEHOLDERS = {
    "filter": "%filter%",
    "order": "%orderBy%",
    "limit": "%pageSize%",
    "offset": "%pageToken%",
}


def build_query(
    raw_query: Optional[str] = None,
    table: Optional[str] = None,
    filter: Optional[str] = None,
    order_by: Optional[str] = None,
    page_size: Optional[str] = None,
    page_token: Optional[str] = None,
) -> str:
    """
    Build a statement from either a table name or a raw query.

    A table yields `SELECT * FROM <table>` followed by the four clause slots;
    a raw query is used verbatim and only its own placeholders (if any) are
    substituted. Empty clauses leave their surrounding spaces in place.
    """
    parts = QueryParts.from_params(filter, order_by, page_size, page_token)

    if table:
        statement = TABLE_TEMPLATE.format(table=table)
    else:
        statement = raw_query or ""

    sql = parts.apply(statement)
    log.debug("built query: %s", sql)
    return sql


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "NAN_TEXT",
    "PLACEHOLDERS",
    "QueryParts",
    "build_query",
    "parse_int",
]

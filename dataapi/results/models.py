from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
import json

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

RECORD = "RECORD"


class FieldMode(str, Enum):
    NULLABLE = "NULLABLE"
    REQUIRED = "REQUIRED"
    REPEATED = "REPEATED"


@dataclass(frozen=True)
class FieldDescriptor:
    """
    One column of a result schema. `type` stays the wire string; only
    RECORD changes how the matching cell is read.
    """
    name: str
    type: str
    mode: FieldMode = FieldMode.NULLABLE
    fields: Tuple["FieldDescriptor", ...] = ()

    @property
    def is_record(self) -> bool:
        return self.type == RECORD

    @property
    def is_repeated(self) -> bool:
        return self.mode == FieldMode.REPEATED

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "type": self.type, "mode": self.mode.value}
        if self.fields:
            out["fields"] = [f.to_dict() for f in self.fields]
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldDescriptor":
        return cls(
            name=data["name"],
            type=str(data.get("type", "STRING")).upper(),
            mode=FieldMode(str(data.get("mode") or FieldMode.NULLABLE.value).upper()),
            fields=tuple(cls.from_dict(f) for f in data.get("fields", [])),
        )


def parse_fields(raw: List[Dict[str, Any]]) -> Tuple[FieldDescriptor, ...]:
    return tuple(FieldDescriptor.from_dict(f) for f in raw or [])


# ---------------------------------------------------------------------------
# Row cells
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldWrapper:
    """`{"f": [...]}`: one sub-cell per schema field at this level."""
    cells: Tuple["Cell", ...]
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def wire_value(self) -> Any:
        return self.raw.get("v")


@dataclass(frozen=True)
class RepeatedValue:
    """`{"v": [...]}`: repeated instances of the same field."""
    items: Tuple["Cell", ...]
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def wire_value(self) -> Any:
        return self.raw.get("v")


@dataclass(frozen=True)
class SingleValue:
    """`{"v": x}` where x is a scalar, null, or a nested cell."""
    value: Any
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def wire_value(self) -> Any:
        return self.raw.get("v")


Cell = Union[FieldWrapper, RepeatedValue, SingleValue]
CELL_TYPES = (FieldWrapper, RepeatedValue, SingleValue)


def classify_cell(raw: Dict[str, Any]) -> Cell:
    """
    Turn one wire cell into its tagged form, recursively.

    A present `f` wins over `v`; a list under `v` is a repeated value;
    a mapping under `v` is a nested cell; anything else is a scalar.
    """
    if not isinstance(raw, dict):
        raise TypeError(f"Expected a cell object, got {type(raw).__name__}: {raw!r}")

    if raw.get("f") is not None:
        return FieldWrapper(cells=tuple(classify_cell(c) for c in raw["f"]), raw=raw)

    value = raw.get("v")
    if isinstance(value, list):
        return RepeatedValue(items=tuple(classify_cell(c) for c in value), raw=raw)
    if isinstance(value, dict):
        return SingleValue(value=classify_cell(value), raw=raw)
    return SingleValue(value=value, raw=raw)


# ---------------------------------------------------------------------------
# Result page
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResultPage:
    """
    One page of a query result: schema-aligned rows plus the service's
    bookkeeping. Rows and fields are aligned by position, not by name.
    """
    rows: Tuple[Cell, ...] = ()
    fields: Tuple[FieldDescriptor, ...] = ()
    total_rows: Optional[int] = None
    job_complete: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResultPage":
        schema = data.get("schema") or {}
        total = data.get("totalRows")
        return cls(
            rows=tuple(classify_cell(r) for r in data.get("rows") or []),
            fields=parse_fields(schema.get("fields", [])),
            total_rows=int(total) if total is not None else None,
            job_complete=bool(data.get("jobComplete", True)),
        )


def parse_result_page(payload: Union[str, bytes, Dict[str, Any]]) -> ResultPage:
    """
    Accept a JSON string or dict as returned by the query service and
    return a ResultPage.
    """
    data = json.loads(payload) if isinstance(payload, (str, bytes)) else payload
    return ResultPage.from_dict(data)


__all__ = [
    "RECORD",
    "FieldMode",
    "FieldDescriptor",
    "parse_fields",
    "FieldWrapper",
    "RepeatedValue",
    "SingleValue",
    "Cell",
    "CELL_TYPES",
    "classify_cell",
    "ResultPage",
    "parse_result_page",
]

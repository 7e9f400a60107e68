"""Column mapping between spreadsheet headers and sales_data fields."""

# Module responsibilities:
# - Load the header -> field -> kind table from YAML.
# - Validate it once so lookups never need to second-guess the data.
# - Offer lookups in both directions.

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import yaml

from salesboard.core.enums import ValueKind
from salesboard.core.exceptions import MappingError

DEFAULT_MAPPING_PATH = Path(__file__).resolve().parent / "data" / "sales_columns.yaml"


@dataclass(frozen=True)
class ColumnMapping:
    """One spreadsheet header mapped to a typed sales_data field."""

    header: str
    field: str
    kind: ValueKind


@dataclass(frozen=True)
class ColumnMappingTable:
    """Immutable, validated set of column mappings."""

    columns: Tuple[ColumnMapping, ...]
    period_source_headers: Tuple[str, ...] = ()
    _by_header: Dict[str, ColumnMapping] = field(default_factory=dict, init=False, repr=False, compare=False)
    _by_field: Dict[str, ColumnMapping] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_header: Dict[str, ColumnMapping] = {}
        by_field: Dict[str, ColumnMapping] = {}
        for column in self.columns:
            key = column.header.lower()
            if key in by_header:
                raise MappingError(f"Duplicate header in column mapping: {column.header!r}")
            if column.field in by_field:
                raise MappingError(f"Duplicate field in column mapping: {column.field!r}")
            by_header[key] = column
            by_field[column.field] = column
        if not self.period_source_headers:
            raise MappingError("Column mapping must name at least one period source header")
        object.__setattr__(self, "_by_header", by_header)
        object.__setattr__(self, "_by_field", by_field)

    @classmethod
    def from_yaml(cls, path: Path) -> "ColumnMappingTable":
        """Load and validate a mapping table from a YAML file."""

        with path.open("r", encoding="utf-8") as fh:
            payload = yaml.safe_load(fh)
        if not isinstance(payload, dict):
            raise MappingError("Invalid mapping YAML structure (expected mapping)")
        if missing := {"columns", "period_source_headers"} - payload.keys():
            raise MappingError(
                f"Mapping YAML missing required keys: {', '.join(sorted(missing))}"
            )

        columns: List[ColumnMapping] = []
        for position, entry in enumerate(payload["columns"] or [], start=1):
            if not isinstance(entry, dict) or not {"header", "field", "kind"} <= entry.keys():
                raise MappingError(f"Column entry #{position} needs header, field and kind")
            try:
                kind = ValueKind(str(entry["kind"]).lower())
            except ValueError:
                raise MappingError(
                    f"Column entry #{position} has unknown kind {entry['kind']!r}"
                ) from None
            columns.append(
                ColumnMapping(header=str(entry["header"]), field=str(entry["field"]), kind=kind)
            )

        return cls(
            columns=tuple(columns),
            period_source_headers=tuple(str(h) for h in payload["period_source_headers"] or ()),
        )

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self):
        return iter(self.columns)

    @property
    def fields(self) -> List[str]:
        return [column.field for column in self.columns]

    def fields_of_kind(self, kind: ValueKind) -> List[str]:
        return [column.field for column in self.columns if column.kind is kind]

    def field_for(self, header: str) -> Optional[str]:
        """Canonical field for a spreadsheet header (case-insensitive)."""
        column = self._by_header.get(header.lower())
        return column.field if column else None

    def header_for(self, field_name: str) -> Optional[str]:
        """Spreadsheet header for a canonical field."""
        column = self._by_field.get(field_name)
        return column.header if column else None

    def kind_of(self, field_name: str) -> Optional[ValueKind]:
        column = self._by_field.get(field_name)
        return column.kind if column else None

    def check_fields(self, known_fields: Iterable[str]) -> None:
        """Raise MappingError when a mapped field has no storage column."""
        unknown = sorted(set(self.fields) - set(known_fields))
        if unknown:
            raise MappingError(f"Mapped fields missing from storage schema: {', '.join(unknown)}")


@lru_cache
def get_column_mapping() -> ColumnMappingTable:
    """The packaged sales column mapping."""
    return ColumnMappingTable.from_yaml(DEFAULT_MAPPING_PATH)

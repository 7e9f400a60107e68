"""Raw spreadsheet record -> canonical sales row."""

from typing import Any, Callable, Dict, List, Optional, Tuple

from salesboard.core.enums import Entity, ValueKind
from salesboard.transformers.coercion import (
    coerce_date,
    coerce_number,
    coerce_text,
    derive_period,
    is_blank,
)
from salesboard.transformers.column_mapping import ColumnMappingTable, get_column_mapping

RawRecord = Dict[str, Any]
CanonicalRow = Dict[str, Any]

ROW_KEYS = ("entity", "year", "quarter", "upload_batch_id")

_COERCERS: Dict[ValueKind, Callable[[Any], Any]] = {
    ValueKind.DATE: coerce_date,
    ValueKind.NUMBER: coerce_number,
    ValueKind.TEXT: coerce_text,
}


class _HeaderIndex:
    """Per-record header lookup: exact match first, then case-insensitive."""

    __slots__ = ("_raw", "_folded")

    def __init__(self, raw: RawRecord):
        self._raw = raw
        self._folded: Dict[str, str] = {}
        for header in raw:
            # first spelling wins when two headers differ only by case
            self._folded.setdefault(str(header).strip().lower(), header)

    def get(self, header: str) -> Any:
        if header in self._raw:
            return self._raw[header]
        actual = self._folded.get(header.lower())
        return self._raw[actual] if actual is not None else None


class RowTransformer:
    """
    Maps raw records onto the canonical sales row.

    Transformation is total over cell values: a cell that cannot be
    coerced becomes None and, through ``transform_with_warnings``, yields
    a warning message. The entity is an ``Entity`` member, validated by
    the caller before any record is read.
    """

    def __init__(self, table: Optional[ColumnMappingTable] = None):
        self.table = table or get_column_mapping()

    def transform(
        self,
        raw: RawRecord,
        entity: Entity,
        batch_id: Optional[str],
    ) -> CanonicalRow:
        row, _ = self.transform_with_warnings(raw, entity, batch_id)
        return row

    def transform_with_warnings(
        self,
        raw: RawRecord,
        entity: Entity,
        batch_id: Optional[str],
        row_number: Optional[int] = None,
    ) -> Tuple[CanonicalRow, List[str]]:
        """
        Transform one record and report the cells that were dropped.

        Args:
            raw: Header -> cell mapping from the reader
            entity: Validated business unit the row belongs to
            batch_id: Upload batch id, may be None until one is allocated
            row_number: Spreadsheet row, used to prefix warnings

        Returns:
            Tuple of (canonical row, warning messages)
        """
        index = _HeaderIndex(raw)
        prefix = f"Row {row_number}: " if row_number is not None else ""
        warnings: List[str] = []

        fields: Dict[str, Any] = {}
        for column in self.table:
            value = index.get(column.header)
            coerced = _COERCERS[column.kind](value)
            if coerced is None and not is_blank(value):
                warnings.append(
                    f"{prefix}{column.header} value {value!r} is not a valid {column.kind.value}"
                )
            fields[column.field] = coerced

        period_source = next(
            (header for header in self.table.period_source_headers if not is_blank(index.get(header))),
            None,
        )
        period_date = None
        if period_source is not None:
            raw_period = index.get(period_source)
            period_date = coerce_date(raw_period)
            if period_date is None and self.table.field_for(period_source) is None:
                warnings.append(f"{prefix}{period_source} value {raw_period!r} is not a valid date")
        year, quarter = derive_period(period_date)

        row: CanonicalRow = {
            "entity": entity.value,
            "year": year,
            "quarter": quarter,
            "upload_batch_id": batch_id,
        }
        row.update(fields)
        return row, warnings

    def is_empty(self, row: CanonicalRow) -> bool:
        """True when no mapped field of the row holds a value."""
        return all(row.get(field) is None for field in self.table.fields)

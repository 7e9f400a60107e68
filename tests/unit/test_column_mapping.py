"""Unit tests for the spreadsheet column mapping table."""

from __future__ import annotations

import pytest

from salesboard.core.enums import ValueKind
from salesboard.core.exceptions import MappingError
from salesboard.infrastructure.db.models.sales_data import SalesData
from salesboard.infrastructure.db.repositories.sales_repository import check_column_mapping
from salesboard.transformers.column_mapping import (
    ColumnMapping,
    ColumnMappingTable,
    get_column_mapping,
)


def test_packaged_mapping_has_every_column() -> None:
    table = get_column_mapping()

    assert len(table) == 86
    assert table.period_source_headers == ("Invoice date", "Date")


def test_lookups_work_in_both_directions() -> None:
    table = get_column_mapping()

    assert table.field_for("Invoice date") == "invoice_date"
    assert table.field_for("INVOICE DATE") == "invoice_date"
    assert table.header_for("second_sales") == "2nd Sales"
    assert table.field_for("Not a column") is None
    assert table.header_for("not_a_field") is None


def test_value_kinds_follow_field_names() -> None:
    table = get_column_mapping()

    assert set(table.fields_of_kind(ValueKind.DATE)) == {"invoice_date", "due_date", "created_date"}
    assert table.kind_of("line_amount_mst") is ValueKind.NUMBER
    assert table.kind_of("total_for_invoice") is ValueKind.NUMBER
    assert table.kind_of("open_balance") is ValueKind.NUMBER
    assert table.kind_of("country") is ValueKind.TEXT


def test_every_mapped_field_has_a_storage_column() -> None:
    check_column_mapping()

    columns = set(SalesData.__table__.columns.keys())
    assert set(get_column_mapping().fields) <= columns


def test_check_fields_reports_missing_columns() -> None:
    table = ColumnMappingTable(
        columns=(ColumnMapping("Ghost", "ghost_field", ValueKind.TEXT),),
        period_source_headers=("Ghost",),
    )

    with pytest.raises(MappingError, match="ghost_field"):
        check_column_mapping(table)


def test_duplicate_header_is_rejected_case_insensitively() -> None:
    with pytest.raises(MappingError, match="Duplicate header"):
        ColumnMappingTable(
            columns=(
                ColumnMapping("Country", "country", ValueKind.TEXT),
                ColumnMapping("COUNTRY", "country_2", ValueKind.TEXT),
            ),
            period_source_headers=("Date",),
        )


def test_duplicate_field_is_rejected() -> None:
    with pytest.raises(MappingError, match="Duplicate field"):
        ColumnMappingTable(
            columns=(
                ColumnMapping("Country", "country", ValueKind.TEXT),
                ColumnMapping("Land", "country", ValueKind.TEXT),
            ),
            period_source_headers=("Date",),
        )


def test_period_source_is_required() -> None:
    with pytest.raises(MappingError, match="period source"):
        ColumnMappingTable(columns=(ColumnMapping("Country", "country", ValueKind.TEXT),))


def test_yaml_with_unknown_kind_is_rejected(tmp_path) -> None:
    path = tmp_path / "mapping.yaml"
    path.write_text(
        "period_source_headers: [Date]\n"
        "columns:\n"
        "  - {header: Country, field: country, kind: currency}\n",
        encoding="utf-8",
    )

    with pytest.raises(MappingError, match="unknown kind"):
        ColumnMappingTable.from_yaml(path)


def test_yaml_missing_keys_is_rejected(tmp_path) -> None:
    path = tmp_path / "mapping.yaml"
    path.write_text("columns: []\n", encoding="utf-8")

    with pytest.raises(MappingError, match="period_source_headers"):
        ColumnMappingTable.from_yaml(path)


def test_yaml_kinds_are_case_insensitive(tmp_path) -> None:
    path = tmp_path / "mapping.yaml"
    path.write_text(
        "period_source_headers: [Date]\n"
        "columns:\n"
        "  - {header: Qty, field: quantity, kind: NUMBER}\n",
        encoding="utf-8",
    )

    table = ColumnMappingTable.from_yaml(path)

    assert table.kind_of("quantity") is ValueKind.NUMBER

"""
Read-only sales aggregates for the dashboard.

Every query sums ``line_amount_mst`` (the line amount in the reporting
currency) and accepts the same filters: year, entities, quarter and
country. Entity and country filters take "All" or a comma-joined list.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import extract
from sqlmodel import Session, func, select

from salesboard.core.enums import Entity
from salesboard.core.exceptions import RequestValidationError
from salesboard.infrastructure.db.models.sales_data import SalesData
from salesboard.services.base import BaseService

QUARTERS = ("Q1", "Q2", "Q3", "Q4")
UNKNOWN = "Unknown"

AMOUNT = func.coalesce(func.sum(SalesData.line_amount_mst), 0)
QUANTITY = func.coalesce(func.sum(SalesData.quantity), 0)


def _to_float(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value) if isinstance(value, (Decimal, int, float)) else float(Decimal(str(value)))


def _split(value: Optional[str]) -> List[str]:
    if value is None:
        return []
    items = [item.strip() for item in value.split(",") if item.strip()]
    return [] if items == ["All"] else items


@dataclass
class SalesFilter:
    """Filters shared by all dashboard queries."""
    year: Optional[int] = None
    entities: Optional[List[str]] = None
    quarter: Optional[str] = None
    countries: Optional[List[str]] = None

    @classmethod
    def parse(
        cls,
        year: Optional[int] = None,
        entities: Optional[str] = None,
        quarter: Optional[str] = None,
        country: Optional[str] = None,
    ) -> "SalesFilter":
        """
        Build a filter from query parameters.

        Raises:
            RequestValidationError: On an unknown entity or quarter
        """
        entity_list = _split(entities)
        unknown = [entity for entity in entity_list if entity not in Entity.values()]
        if unknown:
            raise RequestValidationError(
                f"Invalid entity. Must be one of: {', '.join(Entity.values())}",
                field="entities",
                value=", ".join(unknown),
            )

        quarter = (quarter or "").strip().upper() or None
        if quarter == "ALL":
            quarter = None
        if quarter is not None and quarter not in QUARTERS:
            raise RequestValidationError(
                f"Invalid quarter. Must be one of: {', '.join(QUARTERS)}",
                field="quarter",
                value=quarter,
            )

        return cls(
            year=year,
            entities=entity_list or None,
            quarter=quarter,
            countries=_split(country) or None,
        )

    def apply(self, statement, *, with_year: bool = True, with_entities: bool = True):
        if with_year and self.year is not None:
            statement = statement.where(SalesData.year == self.year)
        if with_entities and self.entities:
            statement = statement.where(SalesData.entity.in_(self.entities))
        if self.quarter:
            statement = statement.where(SalesData.quarter == self.quarter)
        if self.countries:
            statement = statement.where(SalesData.country.in_(self.countries))
        return statement


class AggregationService(BaseService):
    """Grouped sales queries behind the dashboard endpoints."""

    def __init__(self, db_session: Session):
        super().__init__(db_session)

    def get_service_name(self) -> str:
        return "aggregation"

    async def available_years(self) -> List[int]:
        """Years with at least one row, newest first."""
        statement = (
            select(SalesData.year)
            .where(SalesData.year.is_not(None))
            .distinct()
            .order_by(SalesData.year.desc())
        )
        return [int(year) for year in self.db.exec(statement).all()]

    async def summary(self, filters: SalesFilter) -> Dict[str, Any]:
        statement = filters.apply(
            select(
                AMOUNT,
                QUANTITY,
                func.count(func.distinct(SalesData.invoice)),
                func.count(SalesData.id),
            )
        )
        amount, quantity, invoices, rows = self.db.exec(statement).one()
        total_amount = _to_float(amount)
        return {
            "total_amount": total_amount,
            "total_quantity": _to_float(quantity),
            "total_invoices": int(invoices or 0),
            "total_rows": int(rows or 0),
            "average_invoice_amount": round(total_amount / invoices, 2) if invoices else 0.0,
        }

    async def monthly_trend(self, filters: SalesFilter) -> List[Dict[str, Any]]:
        """Amount and quantity for each calendar month, gaps filled with zero."""
        month = extract("month", SalesData.invoice_date)
        statement = filters.apply(
            select(month, AMOUNT, QUANTITY)
            .where(SalesData.invoice_date.is_not(None))
            .group_by(month)
        )
        by_month = {int(m): (amount, qty) for m, amount, qty in self.db.exec(statement).all()}
        return [
            {
                "month": m,
                "amount": _to_float(by_month.get(m, (0, 0))[0]),
                "qty": _to_float(by_month.get(m, (0, 0))[1]),
            }
            for m in range(1, 13)
        ]

    async def quarterly_comparison(self, filters: SalesFilter) -> List[Dict[str, Any]]:
        """Quarter totals of the selected year against the year before."""
        if filters.year is None:
            raise RequestValidationError("year is required for quarterly comparison", field="year")

        statement = filters.apply(
            select(SalesData.year, SalesData.quarter, AMOUNT)
            .where(SalesData.year.in_([filters.year, filters.year - 1]))
            .group_by(SalesData.year, SalesData.quarter),
            with_year=False,
        )
        totals = {(year, quarter): amount for year, quarter, amount in self.db.exec(statement).all()}
        return [
            {
                "quarter": quarter,
                "current_year": _to_float(totals.get((filters.year, quarter))),
                "previous_year": _to_float(totals.get((filters.year - 1, quarter))),
            }
            for quarter in QUARTERS
        ]

    async def entity_sales(self, filters: SalesFilter) -> List[Dict[str, Any]]:
        """Totals per entity; the entity filter is ignored so all units compare."""
        statement = filters.apply(
            select(SalesData.entity, AMOUNT).group_by(SalesData.entity),
            with_entities=False,
        )
        rows = [{"entity": entity, "amount": _to_float(amount)} for entity, amount in self.db.exec(statement).all()]
        return sorted(rows, key=lambda item: item["amount"], reverse=True)

    async def _top(self, column, label: str, filters: SalesFilter, limit: Optional[int]) -> List[Dict[str, Any]]:
        statement = filters.apply(
            select(column, AMOUNT, QUANTITY).group_by(column).order_by(AMOUNT.desc())
        )
        if limit is not None:
            statement = statement.limit(limit)
        return [
            {label: name if name is not None else UNKNOWN, "amount": _to_float(amount), "qty": _to_float(qty)}
            for name, amount, qty in self.db.exec(statement).all()
        ]

    async def country_sales(self, filters: SalesFilter, limit: Optional[int] = 10) -> List[Dict[str, Any]]:
        return await self._top(SalesData.country, "country", filters, limit)

    async def top_products(self, filters: SalesFilter, limit: Optional[int] = 10) -> List[Dict[str, Any]]:
        return await self._top(SalesData.product_name, "product_name", filters, limit)

    async def industry_breakdown(self, filters: SalesFilter) -> List[Dict[str, Any]]:
        return await self._top(SalesData.industry, "industry", filters, None)

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from salesboard.infrastructure.db.connection import get_session_dependency
from salesboard.schemas.dashboard import (
    CountrySales,
    EntitySales,
    IndustrySales,
    MonthlyTrendPoint,
    ProductSales,
    QuarterlyComparisonPoint,
    SummaryResponse,
    YearsResponse,
)
from salesboard.services.aggregation_service import AggregationService, SalesFilter

router = APIRouter()


def sales_filter(
    year: Optional[int] = Query(None, description="Fiscal year"),
    entities: Optional[str] = Query("All", description="'All' or comma-joined entity list"),
    quarter: Optional[str] = Query(None, description="Q1-Q4"),
    country: Optional[str] = Query(None, description="Country or comma-joined list"),
) -> SalesFilter:
    return SalesFilter.parse(year=year, entities=entities, quarter=quarter, country=country)


@router.get("/years", response_model=YearsResponse)
async def list_years(db: Session = Depends(get_session_dependency)) -> YearsResponse:
    """Years that have sales data, newest first"""
    return YearsResponse(years=await AggregationService(db).available_years())


@router.get("/dashboard/summary", response_model=SummaryResponse)
async def summary(
    filters: SalesFilter = Depends(sales_filter),
    db: Session = Depends(get_session_dependency),
):
    return await AggregationService(db).summary(filters)


@router.get("/dashboard/monthly-trend", response_model=List[MonthlyTrendPoint])
async def monthly_trend(
    filters: SalesFilter = Depends(sales_filter),
    db: Session = Depends(get_session_dependency),
):
    return await AggregationService(db).monthly_trend(filters)


@router.get("/dashboard/quarterly-comparison", response_model=List[QuarterlyComparisonPoint])
async def quarterly_comparison(
    filters: SalesFilter = Depends(sales_filter),
    db: Session = Depends(get_session_dependency),
):
    return await AggregationService(db).quarterly_comparison(filters)


@router.get("/dashboard/entity-sales", response_model=List[EntitySales])
async def entity_sales(
    filters: SalesFilter = Depends(sales_filter),
    db: Session = Depends(get_session_dependency),
):
    return await AggregationService(db).entity_sales(filters)


@router.get("/dashboard/country-sales", response_model=List[CountrySales])
async def country_sales(
    filters: SalesFilter = Depends(sales_filter),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_session_dependency),
):
    return await AggregationService(db).country_sales(filters, limit=limit)


@router.get("/dashboard/top-products", response_model=List[ProductSales])
async def top_products(
    filters: SalesFilter = Depends(sales_filter),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_session_dependency),
):
    return await AggregationService(db).top_products(filters, limit=limit)


@router.get("/dashboard/industry-breakdown", response_model=List[IndustrySales])
async def industry_breakdown(
    filters: SalesFilter = Depends(sales_filter),
    db: Session = Depends(get_session_dependency),
):
    return await AggregationService(db).industry_breakdown(filters)

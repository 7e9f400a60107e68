from typing import List

from pydantic import BaseModel


class YearsResponse(BaseModel):
    years: List[int]


class SummaryResponse(BaseModel):
    total_amount: float
    total_quantity: float
    total_invoices: int
    total_rows: int
    average_invoice_amount: float


class MonthlyTrendPoint(BaseModel):
    month: int
    amount: float
    qty: float


class QuarterlyComparisonPoint(BaseModel):
    quarter: str
    current_year: float
    previous_year: float


class EntitySales(BaseModel):
    entity: str
    amount: float


class CountrySales(BaseModel):
    country: str
    amount: float
    qty: float


class ProductSales(BaseModel):
    product_name: str
    amount: float
    qty: float


class IndustrySales(BaseModel):
    industry: str
    amount: float
    qty: float

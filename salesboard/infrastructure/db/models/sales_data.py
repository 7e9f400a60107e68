from datetime import date
from decimal import Decimal
from typing import Optional

from sqlmodel import Field

from salesboard.infrastructure.db.models.base import TimestampMixin


class SalesData(TimestampMixin, table=True):
    """
    One invoice line from an uploaded sales workbook.

    Domain columns mirror the packaged column mapping one to one; every
    one of them is nullable because workbooks from different entities
    fill different subsets.
    """
    __tablename__ = "sales_data"

    # Integer key so rows can go through Core bulk inserts
    id: Optional[int] = Field(default=None, primary_key=True)

    entity: str = Field(index=True, max_length=20)
    year: Optional[int] = Field(default=None, index=True)
    quarter: Optional[str] = Field(default=None, max_length=2)
    upload_batch_id: str = Field(index=True, max_length=36)

    sales_type: Optional[str] = Field(default=None)
    invoice: Optional[str] = Field(default=None)
    voucher: Optional[str] = Field(default=None)
    invoice_date: Optional[date] = Field(default=None)
    pool: Optional[str] = Field(default=None)
    supply_method: Optional[str] = Field(default=None)
    sub_method_1: Optional[str] = Field(default=None)
    sub_method_2: Optional[str] = Field(default=None)
    sub_method_3: Optional[str] = Field(default=None)
    application: Optional[str] = Field(default=None)
    industry: Optional[str] = Field(default=None)
    sub_industry_1: Optional[str] = Field(default=None)
    sub_industry_2: Optional[str] = Field(default=None)
    general_group: Optional[str] = Field(default=None)
    sales_order: Optional[str] = Field(default=None)
    account_number: Optional[str] = Field(default=None)
    name: Optional[str] = Field(default=None)
    name2: Optional[str] = Field(default=None)
    customer_invoice_account: Optional[str] = Field(default=None)
    invoice_account: Optional[str] = Field(default=None)
    group: Optional[str] = Field(default=None)
    currency: Optional[str] = Field(default=None)
    invoice_amount: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    invoice_amount_mst: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    sales_tax_amount: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    sales_tax_amount_accounting: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    total_for_invoice: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    total_mst: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    open_balance: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    due_date: Optional[date] = Field(default=None)
    sales_tax_group: Optional[str] = Field(default=None)
    payment_type: Optional[str] = Field(default=None)
    terms_of_payment: Optional[str] = Field(default=None)
    payment_schedule: Optional[str] = Field(default=None)
    method_of_payment: Optional[str] = Field(default=None)
    posting_profile: Optional[str] = Field(default=None)
    delivery_terms: Optional[str] = Field(default=None)
    h_dim_wk: Optional[str] = Field(default=None)
    h_wk_name: Optional[str] = Field(default=None)
    h_dim_cc: Optional[str] = Field(default=None)
    h_dim_name: Optional[str] = Field(default=None)
    line_number: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    street: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None)
    state: Optional[str] = Field(default=None)
    zip_postal_code: Optional[str] = Field(default=None)
    final_zipcode: Optional[str] = Field(default=None)
    region: Optional[str] = Field(default=None)
    product_type: Optional[str] = Field(default=None)
    item_group: Optional[str] = Field(default=None)
    category: Optional[str] = Field(default=None)
    model: Optional[str] = Field(default=None)
    item_number: Optional[str] = Field(default=None)
    product_name: Optional[str] = Field(default=None)
    text: Optional[str] = Field(default=None)
    warehouse: Optional[str] = Field(default=None)
    name3: Optional[str] = Field(default=None)
    quantity: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    inventory_unit: Optional[str] = Field(default=None)
    price_unit: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    net_amount: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    line_amount_mst: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    sales_tax_group2: Optional[str] = Field(default=None)
    tax_item_group: Optional[str] = Field(default=None)
    mode_of_delivery: Optional[str] = Field(default=None)
    dlv_detail: Optional[str] = Field(default=None)
    online_order: Optional[str] = Field(default=None)
    sales_channel: Optional[str] = Field(default=None)
    promotion: Optional[str] = Field(default=None)
    second_sales: Optional[str] = Field(default=None)
    personnel_number: Optional[str] = Field(default=None)
    worker_name: Optional[str] = Field(default=None)
    l_dim_name: Optional[str] = Field(default=None)
    l_dim_wk: Optional[str] = Field(default=None)
    l_wk_name: Optional[str] = Field(default=None)
    l_dim_cc: Optional[str] = Field(default=None)
    main_account: Optional[str] = Field(default=None)
    account_name: Optional[str] = Field(default=None)
    rebate: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)
    description: Optional[str] = Field(default=None)
    country: Optional[str] = Field(default=None)
    created_date: Optional[date] = Field(default=None)
    created_by: Optional[str] = Field(default=None)
    exception: Optional[str] = Field(default=None)
    with_collection_agency: Optional[str] = Field(default=None)
    credit_rating: Optional[str] = Field(default=None)

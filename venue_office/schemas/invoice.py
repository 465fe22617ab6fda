from typing import Optional, List
from pydantic import BaseModel, Field
from decimal import Decimal
from datetime import date


class InvoiceItemIn(BaseModel):
    id: Optional[int] = None
    booking_detail_id: Optional[int] = None
    service_id: int
    name: str
    type: int
    unit_amount: Decimal
    tax_amount: Decimal = Decimal(0)
    count: Decimal = Decimal(1)
    subtotal_without_tax_amount: Decimal
    subtotal_tax_amount: Decimal = Decimal(0)
    subtotal_amount: Decimal


class InvoiceItem(InvoiceItemIn):
    id: int
    invoice_id: Optional[int] = None

    class Config:
        from_attributes = True


# Draft items of one booking detail (POST /invoice-items)
class BookingDetailItems(BaseModel):
    booking_detail_id: int
    items: List[InvoiceItemIn]


class ReconcileResult(BaseModel):
    created: int
    updated: int
    removed: int


class InvoiceAmounts(BaseModel):
    total_amount: Decimal = Decimal(0)
    total_without_tax_amount: Decimal = Decimal(0)
    total_tax_amount: Decimal = Decimal(0)
    service_amount: Decimal = Decimal(0)
    service_without_tax_amount: Decimal = Decimal(0)
    discount_amount: Decimal = Decimal(0)
    discount_without_tax_amount: Decimal = Decimal(0)
    cash_payment_amount: Decimal = Decimal(0)
    card_payment_amount: Decimal = Decimal(0)
    credit_payment_amount: Decimal = Decimal(0)
    deposit_amount: Decimal = Decimal(0)


class InvoiceFields(InvoiceAmounts):
    due_date: Optional[date] = None
    voucher_num: Optional[str] = None
    segment_num: Optional[str] = None
    proviso: Optional[int] = None
    recipient_name: Optional[str] = None


# Invoice: Create (POST /invoices)
class InvoiceCreate(InvoiceFields):
    booking_id: int
    invoice_item_ids: List[int] = Field(..., min_length=1)
    invoice_id: Optional[int] = None
    created_staff_id: Optional[int] = None


# Invoice: Edit (PATCH /invoices/{id}); only fields sent are compared
class InvoiceUpdate(BaseModel):
    total_amount: Optional[Decimal] = None
    total_without_tax_amount: Optional[Decimal] = None
    total_tax_amount: Optional[Decimal] = None
    service_amount: Optional[Decimal] = None
    service_without_tax_amount: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    discount_without_tax_amount: Optional[Decimal] = None
    cash_payment_amount: Optional[Decimal] = None
    card_payment_amount: Optional[Decimal] = None
    credit_payment_amount: Optional[Decimal] = None
    deposit_amount: Optional[Decimal] = None
    due_date: Optional[date] = None
    voucher_num: Optional[str] = None
    segment_num: Optional[str] = None
    proviso: Optional[int] = None
    recipient_name: Optional[str] = None
    updated_staff_id: Optional[int] = None
    items: List[InvoiceItemIn] = []


# Lobby sale (POST /lobby-invoices)
class LobbyInvoiceCreate(InvoiceFields):
    created_staff_id: int
    items: List[InvoiceItemIn] = Field(..., min_length=1)


class Invoice(InvoiceFields):
    id: int
    booking_id: Optional[int] = None
    status: int
    payment_date: Optional[date] = None
    is_past_revision: bool
    past_invoice_id: Optional[int] = None
    items: List[InvoiceItem] = []

    class Config:
        from_attributes = True


# Amount preview (POST /invoices/amounts)
class AmountsRequest(BaseModel):
    invoice_item_ids: List[int]
    tax_rate: Optional[Decimal] = None


class AmountsResponse(BaseModel):
    service_fee: Decimal
    discount_without_tax_amount: Decimal
    subtotal_without_tax_amount: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    subtotal: Decimal

from typing import Optional, List
from pydantic import BaseModel
from decimal import Decimal


class JournalRow(BaseModel):
    key: str
    label: str
    amount: Decimal
    past_amount: Decimal
    net_amount: Decimal


class RoomSales(BaseModel):
    room_id: int
    name: str
    booking_detail_count: int
    basic_fee: Decimal
    overtime_fee: Decimal
    room_amount: Decimal


# Daily / monthly journal: all sales, past-revision adjustment, net
class JournalResponse(BaseModel):
    period: str
    rows: List[JournalRow]
    rooms: Optional[List[RoomSales]] = None


class PeriodRow(BaseModel):
    label: str
    booking_detail_count: Decimal
    guest_count: Decimal
    basic_fee: Decimal
    overtime_fee: Decimal
    food: Decimal
    box_lunch: Decimal
    drinks: Decimal
    device_fee: Decimal
    cancel_fee: Decimal
    service_without_tax_amount: Decimal
    subtotal_sales: Decimal
    delivery_fee: Decimal
    copy_fee: Decimal
    bringing_fee: Decimal
    prepaid_fee: Decimal
    miscellaneous_income: Decimal
    discount_without_tax_amount: Decimal
    net_sales: Decimal
    tax_amount: Decimal
    total_sales: Decimal
    cash_payment_amount: Decimal
    card_payment_amount: Decimal
    credit_payment_amount: Decimal
    deposit_amount: Decimal
    payment_amount: Decimal
    room_amount: Decimal

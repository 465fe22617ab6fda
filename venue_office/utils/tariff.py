import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from venue_office.core.config import FacilityConfig
from venue_office.models.invoice import InvoiceItem
from venue_office.models.service import Service

MAX_BASIC_USAGE_HOURS = Decimal("2")
MIN_ALL_DAY_USAGE_MINUTES = 10 * 60

HOURS = Decimal("0.01")


@dataclass(frozen=True)
class PriceLine:
    service_id: int
    unit: Decimal
    count: Decimal
    tax: Decimal
    subtotal_without_tax: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class RoomPrice:
    basic: PriceLine
    extension: PriceLine
    all_day: PriceLine
    incurred: PriceLine

    def lines(self) -> Tuple[PriceLine, ...]:
        return (self.basic, self.extension, self.all_day, self.incurred)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _minutes(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def _hours(minutes: int) -> Decimal:
    return (Decimal(minutes) / Decimal(60)).quantize(HOURS, rounding=ROUND_HALF_UP)


def _business_window(day_of: datetime, config: FacilityConfig) -> Tuple[datetime, datetime]:
    day = day_of.date()
    return (
        datetime.combine(day, config.business_start),
        datetime.combine(day, config.business_end),
    )


def price_with_tax(unit, count, tax_rate, service_id: int) -> PriceLine:
    """tax is floored per unit; the line subtotal is floored once more after multiplying."""
    unit = Decimal(unit)
    count = Decimal(count)
    tax = Decimal(math.floor(unit * Decimal(tax_rate or 0) / 100))
    subtotal_without_tax = unit * count
    return PriceLine(
        service_id=service_id,
        unit=unit,
        count=count,
        tax=tax,
        subtotal_without_tax=subtotal_without_tax,
        subtotal=Decimal(math.floor(subtotal_without_tax + tax * count)),
    )


def is_all_day_booking(start: datetime, end: datetime, config: FacilityConfig) -> bool:
    """
    A booking is billed as all-day when one of these holds:
      - it sits inside business hours and lasts at least 10 hours
      - it starts at/before opening and runs at least 10 hours past opening
      - it ends at/after closing and started at least 10 hours before closing
    """
    opening, closing = _business_window(start, config)

    if opening <= start and end <= closing and _minutes(start, end) >= MIN_ALL_DAY_USAGE_MINUTES:
        return True
    if start <= opening and _minutes(opening, end) >= MIN_ALL_DAY_USAGE_MINUTES:
        return True
    if end >= closing and _minutes(start, closing) >= MIN_ALL_DAY_USAGE_MINUTES:
        return True
    return False


# ---------------------------------------------------------------------------
# Room price
# ---------------------------------------------------------------------------


def calculate_room_price(
    start: datetime,
    end: datetime,
    basic_unit,
    extension_unit,
    all_day_unit,
    tax_rate,
    incurred_unit,
    config: FacilityConfig,
) -> RoomPrice:
    """Split a room occupation into basic / extension / all-day / incurred charge lines."""
    usage_hours = _hours(_minutes(start, end))
    all_day = is_all_day_booking(start, end, config)
    opening, closing = _business_window(start, config)

    basic_count = Decimal(0) if all_day else min(MAX_BASIC_USAGE_HOURS, usage_hours)

    if all_day:
        # Overtime outside business hours is billed at the extension rate
        overtime_minutes = 0
        if start <= opening:
            overtime_minutes += _minutes(start, opening)
        if end >= closing:
            overtime_minutes += _minutes(closing, end)
        extension_count = _hours(overtime_minutes)
    else:
        extension_count = usage_hours - basic_count

    incurred_count = 1 if start < opening else 0

    return RoomPrice(
        basic=price_with_tax(basic_unit, basic_count, tax_rate, config.basic_fee_service_id),
        extension=price_with_tax(
            extension_unit, extension_count, tax_rate, config.extension_fee_service_id
        ),
        all_day=price_with_tax(
            all_day_unit, 1 if all_day else 0, tax_rate, config.all_day_fee_service_id
        ),
        incurred=price_with_tax(
            incurred_unit, incurred_count, tax_rate, config.incurred_fee_service_id
        ),
    )


def price_booking_detail(detail, incurred_unit, config: FacilityConfig) -> RoomPrice:
    """Price a booking detail from its own tariff snapshot."""
    return calculate_room_price(
        detail.start_datetime,
        detail.end_datetime,
        detail.basic_amount,
        detail.extension_amount,
        detail.all_day_amount,
        detail.tax_rate,
        incurred_unit,
        config,
    )


def build_room_invoice_items(
    price: RoomPrice,
    services: Dict[int, Service],
    booking_detail_id: Optional[int] = None,
) -> List[InvoiceItem]:
    """Draft invoice items for the non-zero lines of a room price."""
    items = []
    for line in price.lines():
        if not line.subtotal or not line.service_id:
            continue
        service = services[line.service_id]
        items.append(InvoiceItem(
            booking_detail_id=booking_detail_id,
            service_id=line.service_id,
            name=service.name,
            type=service.type,
            unit_amount=line.unit,
            tax_amount=line.tax,
            count=line.count,
            subtotal_without_tax_amount=line.subtotal_without_tax,
            subtotal_tax_amount=line.tax * line.count,
            subtotal_amount=line.subtotal,
        ))
    return items

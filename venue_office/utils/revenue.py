"""
Revenue journals for the back office reports.

Sales fall in two groups. Booking sales are invoice items of booking
details that start inside the period; lobby sales are booking-less invoices
paid inside the period. Both groups read only original invoices
(``past_invoice_id IS NULL``), whatever their status, so a correction is
picked up once through the past sales adjustment: every past revision paid
in the period minus the invoice it replaced. Chained corrections telescope,
so the net of a period always reflects the latest revision.

Booking sales take service fee, discount and tax per booking detail and
payments per invoice payment date, so an invoice billing several days is
never counted twice in a multi-day total.
"""
import calendar
import math
from collections import OrderedDict
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from venue_office.models.booking import BookingDetail, BookingDetailStatus
from venue_office.models.invoice import Invoice, InvoiceItem
from venue_office.models.room import Room
from venue_office.models.service import ServiceType
from venue_office.utils.amounts import calculate_amounts

Totals = Dict[str, Decimal]

COUNTED_STATUSES = (
    BookingDetailStatus.official,
    BookingDetailStatus.check_in,
    BookingDetailStatus.withhold_payment,
    BookingDetailStatus.complete_payment,
)

UNSETTLED_STATUSES = (
    BookingDetailStatus.official,
    BookingDetailStatus.check_in,
    BookingDetailStatus.withhold_payment,
)

SUBTOTAL_SERVICE_TYPES = (
    ServiceType.basic_fee,
    ServiceType.overtime_fee,
    ServiceType.food,
    ServiceType.box_lunch,
    ServiceType.drinks,
    ServiceType.cancel_fee,
    ServiceType.device_fee,
)

MISC_SERVICE_TYPES = (
    ServiceType.delivery_fee,
    ServiceType.copy_fee,
    ServiceType.bringing_fee,
    ServiceType.prepaid_fee,
)

# Row labels of the printed journal, in print order
JOURNAL_LABELS = OrderedDict([
    ("booking_detail_count", "会議数"),
    ("guest_count", "延利用者数"),
    ("basic_fee", "R2時間迄"),
    ("overtime_fee", "R2時間超"),
    ("food", "料理"),
    ("box_lunch", "弁当"),
    ("drinks", "飲物"),
    ("device_fee", "機器使用料"),
    ("service_without_tax_amount", "サービス料"),
    ("cancel_fee", "キャンセル"),
    ("subtotal_sales", "<売上計>"),
    ("delivery_fee", "通話料"),
    ("copy_fee", "コピー"),
    ("bringing_fee", "持ち込み料"),
    ("prepaid_fee", "立替"),
    ("miscellaneous_income", "<雑収入計>"),
    ("discount_without_tax_amount", "値引"),
    ("net_sales", "<純売上計>"),
    ("tax_amount", "消費税"),
    ("total_sales", "<売上総合計>"),
    ("cash_payment_amount", "現金"),
    ("card_payment_amount", "カード"),
    ("credit_payment_amount", "売掛"),
    ("deposit_amount", "前受金"),
    ("payment_amount", "<入金合計>"),
])

PAYMENT_FIELDS = (
    "cash_payment_amount",
    "card_payment_amount",
    "credit_payment_amount",
    "deposit_amount",
)

INVOICE_AMOUNT_FIELDS = ("service_without_tax_amount",) + PAYMENT_FIELDS


# ---------------------------------------------------------------------------
# Totalization
# ---------------------------------------------------------------------------


def empty_totals() -> Totals:
    totals = {key: Decimal(0) for key in JOURNAL_LABELS}
    totals["room_amount"] = Decimal(0)
    return totals


def _service_amounts(items: Iterable[InvoiceItem]) -> Totals:
    amounts = {service_type.name: Decimal(0) for service_type in ServiceType}
    for item in items:
        amounts[ServiceType(item.type).name] += Decimal(item.subtotal_without_tax_amount or 0)
    return amounts


def _derive(totals: Totals) -> Totals:
    totals["subtotal_sales"] = (
        sum(totals[t.name] for t in SUBTOTAL_SERVICE_TYPES) + totals["service_without_tax_amount"]
    )
    totals["miscellaneous_income"] = sum(totals[t.name] for t in MISC_SERVICE_TYPES)
    totals["net_sales"] = (
        totals["subtotal_sales"]
        + totals["miscellaneous_income"]
        + totals["discount_without_tax_amount"]
    )
    totals["total_sales"] = totals["net_sales"] + totals["tax_amount"]
    totals["payment_amount"] = (
        totals["cash_payment_amount"]
        + totals["card_payment_amount"]
        + totals["credit_payment_amount"]
        + totals["deposit_amount"]
    )
    totals["room_amount"] = totals["basic_fee"] + totals["overtime_fee"]
    return totals


def totalize(items: List[InvoiceItem], invoices: List[Invoice]) -> Totals:
    """Totals of settled sales: item amounts by service type, money from the invoices."""
    totals = empty_totals()
    totals.update(_service_amounts(items))
    for invoice in invoices:
        for field in INVOICE_AMOUNT_FIELDS:
            totals[field] += Decimal(getattr(invoice, field) or 0)
        totals["discount_without_tax_amount"] -= Decimal(invoice.discount_without_tax_amount or 0)
        totals["tax_amount"] += Decimal(invoice.total_tax_amount or 0)
    return _derive(totals)


def totalize_booking(db: Session, items: List[InvoiceItem], start: date, end: date) -> Totals:
    """
    Totals of settled booking sales inside [start, end).

    An invoice may bill details of several days, so its service fee,
    discount and tax are recomputed per detail from that detail's items.
    Payments are counted only on the invoice's own payment date.
    """
    totals = empty_totals()
    totals.update(_service_amounts(items))

    per_detail: Dict[int, List[int]] = OrderedDict()
    tax_rates: Dict[int, int] = {}
    for item in items:
        per_detail.setdefault(item.booking_detail_id, []).append(item.id)
        tax_rates[item.booking_detail_id] = item.booking_detail.tax_rate

    for detail_id, item_ids in per_detail.items():
        amounts = calculate_amounts(db, item_ids, tax_rates[detail_id])
        totals["service_without_tax_amount"] += amounts["service_fee"]
        totals["discount_without_tax_amount"] += amounts["discount_without_tax_amount"]
        totals["tax_amount"] += amounts["tax_amount"]

    for invoice in _invoices_of(items):
        if invoice.payment_date is None or not start <= invoice.payment_date < end:
            continue
        for field in PAYMENT_FIELDS:
            totals[field] += Decimal(getattr(invoice, field) or 0)
    return _derive(totals)


def totalize_unsettled(items: List[InvoiceItem]) -> Totals:
    """Totals of booking details not paid yet, taxed per detail from its own figures."""
    totals = empty_totals()
    totals.update(_service_amounts(items))

    per_detail: Dict[int, Decimal] = {}
    details: Dict[int, BookingDetail] = {}
    for item in items:
        details[item.booking_detail_id] = item.booking_detail
        per_detail[item.booking_detail_id] = (
            per_detail.get(item.booking_detail_id, Decimal(0))
            + Decimal(item.subtotal_without_tax_amount or 0)
        )

    for detail_id, without_tax in per_detail.items():
        detail = details[detail_id]
        service = Decimal(detail.total_service_without_tax_amount or 0)
        discount = Decimal(detail.discount_amount or 0)
        totals["service_without_tax_amount"] += service
        totals["discount_without_tax_amount"] -= discount
        totals["deposit_amount"] += Decimal(detail.deposit_amount or 0)
        totals["tax_amount"] += Decimal(
            math.floor((without_tax + service - discount) * Decimal(detail.tax_rate) / 100)
        )
    return _derive(totals)


def combine(*parts: Totals) -> Totals:
    totals = empty_totals()
    for part in parts:
        for key, value in part.items():
            totals[key] = totals.get(key, Decimal(0)) + value
    return totals


def subtract(minuend: Totals, subtrahend: Totals) -> Totals:
    return {key: value - subtrahend.get(key, Decimal(0)) for key, value in minuend.items()}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def _window(start: date, end: date):
    return datetime.combine(start, time.min), datetime.combine(end, time.min)


def _invoices_of(items: List[InvoiceItem]) -> List[Invoice]:
    seen = OrderedDict()
    for item in items:
        if item.invoice is not None:
            seen.setdefault(item.invoice.id, item.invoice)
    return list(seen.values())


def settled_booking_items(db: Session, start: date, end: date) -> List[InvoiceItem]:
    start_at, end_at = _window(start, end)
    return (
        db.query(InvoiceItem)
        .join(BookingDetail, BookingDetail.id == InvoiceItem.booking_detail_id)
        .join(Invoice, Invoice.id == InvoiceItem.invoice_id)
        .options(joinedload(InvoiceItem.invoice), joinedload(InvoiceItem.booking_detail))
        .filter(
            BookingDetail.status == BookingDetailStatus.complete_payment,
            BookingDetail.start_datetime >= start_at,
            BookingDetail.start_datetime < end_at,
            Invoice.past_invoice_id.is_(None),
        )
        .all()
    )


def unsettled_booking_items(db: Session, start: date, end: date) -> List[InvoiceItem]:
    start_at, end_at = _window(start, end)
    return (
        db.query(InvoiceItem)
        .join(BookingDetail, BookingDetail.id == InvoiceItem.booking_detail_id)
        .options(joinedload(InvoiceItem.booking_detail))
        .filter(
            BookingDetail.status.in_(UNSETTLED_STATUSES),
            BookingDetail.cancel_datetime.is_(None),
            BookingDetail.start_datetime >= start_at,
            BookingDetail.start_datetime < end_at,
        )
        .all()
    )


def booking_counts(db: Session, start: date, end: date) -> Totals:
    start_at, end_at = _window(start, end)
    count, guests = (
        db.query(func.count(BookingDetail.id), func.coalesce(func.sum(BookingDetail.guest_count), 0))
        .filter(
            BookingDetail.status.in_(COUNTED_STATUSES),
            BookingDetail.cancel_datetime.is_(None),
            BookingDetail.start_datetime >= start_at,
            BookingDetail.start_datetime < end_at,
        )
        .one()
    )
    return {"booking_detail_count": Decimal(count), "guest_count": Decimal(guests)}


def booking_sales(db: Session, start: date, end: date, include_unsettled: bool = False) -> Totals:
    totals = totalize_booking(db, settled_booking_items(db, start, end), start, end)
    if include_unsettled:
        totals = combine(totals, totalize_unsettled(unsettled_booking_items(db, start, end)))
    totals.update(booking_counts(db, start, end))
    return totals


def lobby_sales(db: Session, start: date, end: date) -> Totals:
    invoices = (
        db.query(Invoice)
        .options(joinedload(Invoice.items))
        .filter(
            Invoice.booking_id.is_(None),
            Invoice.past_invoice_id.is_(None),
            Invoice.payment_date >= start,
            Invoice.payment_date < end,
        )
        .all()
    )
    return totalize([item for invoice in invoices for item in invoice.items], invoices)


def past_sales(db: Session, start: date, end: date) -> Totals:
    """Revisions paid in the period minus the invoices they replaced."""
    revisions = (
        db.query(Invoice)
        .options(joinedload(Invoice.items), joinedload(Invoice.past_invoice).joinedload(Invoice.items))
        .filter(
            Invoice.past_invoice_id.isnot(None),
            Invoice.payment_date >= start,
            Invoice.payment_date < end,
        )
        .all()
    )
    replaced = [revision.past_invoice for revision in revisions]
    return subtract(
        totalize([item for invoice in revisions for item in invoice.items], revisions),
        totalize([item for invoice in replaced for item in invoice.items], replaced),
    )


def period_sales(db: Session, start: date, end: date, include_unsettled: bool = False):
    """``all``, ``past`` and ``net`` totals of the half-open date range [start, end)."""
    all_sales = combine(
        booking_sales(db, start, end, include_unsettled=include_unsettled),
        lobby_sales(db, start, end),
    )
    past = past_sales(db, start, end)
    return {"all": all_sales, "past": past, "net": combine(all_sales, past)}


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def _month_range(year: int, month: int):
    start = date(year, month, 1)
    days = calendar.monthrange(year, month)[1]
    return start, start + timedelta(days=days), days


def day_revenue(db: Session, target: date):
    return period_sales(db, target, target + timedelta(days=1))


def room_breakdown(db: Session, start: date, end: date) -> List[Dict]:
    """Basic and overtime fees per room, settled and unsettled together."""
    items = settled_booking_items(db, start, end) + unsettled_booking_items(db, start, end)
    rows: Dict[int, Dict] = OrderedDict()
    for room in db.query(Room).order_by(Room.id):
        rows[room.id] = {
            "room_id": room.id,
            "name": room.name,
            "booking_detail_count": 0,
            "basic_fee": Decimal(0),
            "overtime_fee": Decimal(0),
        }

    counted = set()
    for item in items:
        if item.type not in (ServiceType.basic_fee, ServiceType.overtime_fee):
            continue
        row = rows.get(item.booking_detail.room_id)
        if row is None:
            continue
        row[ServiceType(item.type).name] += Decimal(item.subtotal_without_tax_amount or 0)
        if item.booking_detail_id not in counted:
            counted.add(item.booking_detail_id)
            row["booking_detail_count"] += 1

    for row in rows.values():
        row["room_amount"] = row["basic_fee"] + row["overtime_fee"]
    return list(rows.values())


def monthly_revenue(db: Session, year: int, month: int):
    start, end, days = _month_range(year, month)
    sales = period_sales(db, start, end, include_unsettled=True)

    total_area = db.query(func.coalesce(func.sum(Room.area), 0)).filter(Room.is_active.is_(True)).scalar()
    for totals in sales.values():
        room_amount = totals["room_amount"]
        has_bookings = totals["booking_detail_count"] > 0
        totals["room_amount_by_average_day"] = (
            Decimal(math.floor(room_amount / days)) if has_bookings else Decimal(0)
        )
        totals["room_amount_by_average_area"] = (
            Decimal(math.floor(room_amount / Decimal(total_area))) if total_area else Decimal(0)
        )

    return {**sales, "rooms": room_breakdown(db, start, end)}


def _bucket_start(day: int) -> int:
    if day <= 10:
        return 1
    if day <= 20:
        return 11
    return 21


def _summary_row(label: str, rows: List[Totals]) -> Dict:
    return {"label": label, **combine(*rows)}


def revenue_between_months(db: Session, year: int, month: int) -> List[Dict]:
    """One net row per day, a subtotal after every ten days and the month total last."""
    start, _, days = _month_range(year, month)
    result = []
    bucket: List[Totals] = []
    day_rows: List[Totals] = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        net = day_revenue(db, day)["net"]
        result.append({"label": day.isoformat(), **net})
        bucket.append(net)
        day_rows.append(net)
        if day.day in (10, 20) or offset == days - 1:
            result.append(_summary_row(f"{_bucket_start(day.day)}-{day.day}", bucket))
            bucket = []
    result.append(_summary_row("total", day_rows))
    return result


def month_revenue(db: Session, year: int) -> List[Dict]:
    rows = []
    for month in range(1, 13):
        start, end, _ = _month_range(year, month)
        rows.append({"label": str(month), **period_sales(db, start, end)["net"]})
    year_net = period_sales(db, date(year, 1, 1), date(year + 1, 1, 1))["net"]
    rows.append({"label": "total", **year_net})
    return rows


def journal_rows(totals: Totals, past: Optional[Totals] = None, net: Optional[Totals] = None):
    """Label-ordered rows for a spreadsheet writer."""
    return [
        {
            "key": key,
            "label": label,
            "amount": totals.get(key, Decimal(0)),
            "past_amount": (past or {}).get(key, Decimal(0)),
            "net_amount": (net or {}).get(key, Decimal(0)),
        }
        for key, label in JOURNAL_LABELS.items()
    ]

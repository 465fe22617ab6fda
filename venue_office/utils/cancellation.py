import logging
import math
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from venue_office.core.config import FacilityConfig
from venue_office.core.exceptions import NotFound, ValidationError
from venue_office.models.booking import BookingDetail, BookingDetailStatus, CancelType
from venue_office.models.invoice import InvoiceItem
from venue_office.models.service import Service
from venue_office.utils.tariff import price_booking_detail

logger = logging.getLogger(__name__)

# Grace period (days before the event) per cancel type; "others" uses the detail's own value
CANCEL_DAY_LIMITS = {
    CancelType.normal: 14,
    CancelType.student: 30,
}

STUDENT_RATE = 100
OUT_OF_DATE_RATE = 100  # canceled on or after the event day
IN_DUE_DATE_RATE = 50

NO_FEE_STATUSES = (
    BookingDetailStatus.temporary,
    BookingDetailStatus.waiting_cancel,
)


def days_before_event(detail: BookingDetail, cancel_date: date) -> int:
    return (detail.start_datetime.date() - cancel_date).days


def cancel_day_limit(detail: BookingDetail) -> int:
    if detail.cancel_type == CancelType.others:
        return detail.cancellation_fee_days or 0
    return CANCEL_DAY_LIMITS[CancelType(detail.cancel_type)]


def cancel_rate(detail: BookingDetail, diff_days: int) -> int:
    if detail.cancel_type == CancelType.student:
        return STUDENT_RATE
    if diff_days <= 0:
        return OUT_OF_DATE_RATE
    return IN_DUE_DATE_RATE


def calculate_cancel_fee(
    detail: BookingDetail,
    cancel_date: date,
    incurred_unit,
    config: FacilityConfig,
) -> int:
    """
    Fee owed for canceling ``detail`` on ``cancel_date``.

    No fee when the detail has no cancel type, is still temporary or waiting
    for cancellation, or the gap to the event is within the type's day
    limit. Otherwise the room charge (all-day + basic + extension, tax
    included) is billed at the type's rate and floored.
    """
    if not detail.cancel_type or detail.status in NO_FEE_STATUSES:
        return 0

    diff_days = days_before_event(detail, cancel_date)
    if diff_days <= cancel_day_limit(detail):
        return 0

    price = price_booking_detail(detail, incurred_unit, config)
    room_total = price.all_day.subtotal + price.basic.subtotal + price.extension.subtotal
    return math.floor(room_total * cancel_rate(detail, diff_days) / 100)


def _get_service(db: Session, service_id: int) -> Optional[Service]:
    return db.query(Service).filter(Service.id == service_id).first()


def cancel_booking_detail(
    db: Session,
    detail: BookingDetail,
    config: FacilityConfig,
    cancel_date: Optional[date] = None,
    cancel_staff_id: Optional[int] = None,
    cancel_requester_name: Optional[str] = None,
    cancel_requester_tel: Optional[str] = None,
) -> int:
    """
    Stage the cancellation of a booking detail and return the fee.

    With a fee, the unbilled items of the detail are replaced by a single
    cancellation-fee item and its service amount is reset. Nothing is
    committed here; the caller commits the whole change at once.
    """
    cancel_date = cancel_date or date.today()
    cancel_datetime = datetime.combine(cancel_date, time.min)
    if detail.start_datetime < cancel_datetime:
        raise ValidationError("Booking detail has already started")

    incurred_service = _get_service(db, config.incurred_fee_service_id)
    incurred_unit = incurred_service.unit_price if incurred_service else 0
    fee = calculate_cancel_fee(detail, cancel_date, incurred_unit, config)

    detail.status = BookingDetailStatus.canceled
    detail.cancel_datetime = cancel_datetime
    detail.cancel_price = fee
    if cancel_staff_id:
        detail.cancel_staff_id = cancel_staff_id
    if cancel_requester_name:
        detail.cancel_requester_name = cancel_requester_name
    if cancel_requester_tel:
        detail.cancel_requester_tel = cancel_requester_tel

    if fee == 0:
        return fee

    cancel_service = _get_service(db, config.cancel_fee_service_id)
    if not cancel_service:
        raise NotFound("Cancellation fee service not found")

    db.query(InvoiceItem).filter(
        InvoiceItem.booking_detail_id == detail.id,
        InvoiceItem.invoice_id.is_(None),
    ).delete(synchronize_session="fetch")

    db.add(InvoiceItem(
        booking_detail_id=detail.id,
        service_id=cancel_service.id,
        name=cancel_service.name,
        type=cancel_service.type,
        unit_amount=fee,
        tax_amount=0,
        count=1,
        subtotal_tax_amount=0,
        subtotal_without_tax_amount=fee,
        subtotal_amount=fee,
    ))
    detail.total_service_without_tax_amount = Decimal(0)

    logger.info("Booking detail %s canceled with fee %s", detail.id, fee)
    return fee

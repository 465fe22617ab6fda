import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from venue_office.core.exceptions import NotFound, ValidationError
from venue_office.models.booking import Booking, BookingDetail, BookingDetailStatus
from venue_office.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from venue_office.models.people import Staff
from venue_office.models.service import LocationType, Service
from venue_office.utils.invoice_items import ITEM_FIELDS, find_draft_items

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Booking detail status after billing changes
# ---------------------------------------------------------------------------


def mark_fully_billed_details(db: Session, booking_detail_ids: Iterable[int]) -> None:
    """A detail with no draft items left has been paid in full."""
    for detail_id in set(booking_detail_ids):
        if find_draft_items(db, detail_id):
            continue
        detail = db.query(BookingDetail).filter(BookingDetail.id == detail_id).first()
        detail.status = BookingDetailStatus.complete_payment


def revert_unbilled_details(db: Session, booking_detail_ids: Iterable[int]) -> None:
    for detail_id in set(booking_detail_ids):
        detail = db.query(BookingDetail).filter(BookingDetail.id == detail_id).first()
        if detail is None:
            continue
        billed = (
            db.query(InvoiceItem)
            .filter(
                InvoiceItem.booking_detail_id == detail_id,
                InvoiceItem.invoice_id.isnot(None),
            )
            .count()
        )
        if detail.cancel_datetime:
            detail.status = BookingDetailStatus.canceled
        elif billed:
            detail.status = BookingDetailStatus.withhold_payment
        else:
            detail.status = BookingDetailStatus.official


# ---------------------------------------------------------------------------
# Booking invoices
# ---------------------------------------------------------------------------


def bill_booking_items(
    db: Session,
    booking_id: int,
    item_ids: List[int],
    fields: Dict[str, Any],
    invoice_id: Optional[int] = None,
    today: Optional[date] = None,
) -> Invoice:
    """
    Put the given items of a booking on an invoice.

    Without ``invoice_id`` a new invoice paid today is created; with one,
    that invoice's items are replaced by the given set.
    """
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFound("Booking not found")

    items = (
        db.query(InvoiceItem)
        .join(BookingDetail, BookingDetail.id == InvoiceItem.booking_detail_id)
        .filter(InvoiceItem.id.in_(item_ids), BookingDetail.booking_id == booking_id)
        .all()
    )
    if len(items) != len(set(item_ids)):
        raise ValidationError("Invoice items do not belong to the booking")

    if invoice_id is not None:
        invoice = db.query(Invoice).filter(
            Invoice.id == invoice_id, Invoice.booking_id == booking_id
        ).first()
        if not invoice:
            raise ValidationError("Invoice does not belong to the booking")
        db.query(InvoiceItem).filter(InvoiceItem.invoice_id == invoice.id).update(
            {"invoice_id": None}, synchronize_session="fetch"
        )
        for field, value in fields.items():
            setattr(invoice, field, value)
    else:
        invoice = Invoice(
            **fields,
            booking_id=booking_id,
            status=InvoiceStatus.completed,
            payment_date=today or date.today(),
        )
        db.add(invoice)
        db.flush()

    for item in items:
        if item.invoice_id not in (None, invoice.id):
            raise ValidationError("Invoice item is already billed on another invoice")
        item.invoice_id = invoice.id
    db.flush()

    mark_fully_billed_details(db, [item.booking_detail_id for item in items])
    return invoice


def delete_invoice(db: Session, invoice: Invoice) -> None:
    """
    Remove an invoice. Booking items go back to drafts of their detail;
    lobby items have no other owner and are deleted with it.
    """
    if db.query(Invoice).filter(Invoice.past_invoice_id == invoice.id).first():
        raise ValidationError("Invoice is referenced by a past revision")

    detail_ids = [item.booking_detail_id for item in invoice.items if item.booking_detail_id]
    for item in list(invoice.items):
        if item.booking_detail_id:
            item.invoice_id = None
        else:
            db.delete(item)
    db.flush()
    db.expire(invoice, ["items"])
    db.delete(invoice)
    db.flush()

    if invoice.booking_id:
        revert_unbilled_details(db, detail_ids)


# ---------------------------------------------------------------------------
# Lobby sales
# ---------------------------------------------------------------------------


def create_lobby_invoice(
    db: Session,
    fields: Dict[str, Any],
    items: List[Dict[str, Any]],
    today: Optional[date] = None,
) -> Invoice:
    """Walk-in sale: no booking, every service sold at the lobby, paid in cash."""
    staff_id = fields.get("created_staff_id")
    if not db.query(Staff).filter(Staff.id == staff_id).first():
        raise NotFound("Staff not found")

    service_ids = {item["service_id"] for item in items}
    services = db.query(Service).filter(Service.id.in_(service_ids)).all() if service_ids else []
    if len(services) != len(service_ids) or any(
        service.location_type != LocationType.lobby for service in services
    ):
        raise ValidationError("Lobby invoices accept lobby services only")

    invoice = Invoice(**{
        **fields,
        "booking_id": None,
        "status": InvoiceStatus.completed,
        "payment_date": today or date.today(),
        "cash_payment_amount": fields.get("total_amount", 0),
        "card_payment_amount": 0,
        "credit_payment_amount": 0,
        "deposit_amount": 0,
    })
    db.add(invoice)
    db.flush()
    for values in items:
        data = {field: values[field] for field in ITEM_FIELDS if field in values}
        db.add(InvoiceItem(**data, invoice_id=invoice.id))
    db.flush()

    logger.info("Lobby invoice %s created", invoice.id)
    return invoice

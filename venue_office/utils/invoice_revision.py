import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from venue_office.core.exceptions import INVOICE_ITEMS_REJECTED, ValidationError
from venue_office.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from venue_office.utils.invoice_items import (
    ITEM_FIELDS,
    booking_details_exist,
    reconcile_invoice_items,
    services_exist,
)

logger = logging.getLogger(__name__)

# Any difference here on a settled invoice forces a revision
MONETARY_FIELDS = (
    "total_amount",
    "card_payment_amount",
    "cash_payment_amount",
    "credit_payment_amount",
    "deposit_amount",
    "discount_amount",
    "discount_without_tax_amount",
    "service_amount",
    "service_without_tax_amount",
    "total_tax_amount",
    "total_without_tax_amount",
)

ITEM_COMPARED_FIELDS = ("count", "unit_amount", "subtotal_amount", "subtotal_tax_amount")

# Never copied onto a revision
REVISION_DROPPED_FIELDS = (
    "id",
    "created_at",
    "updated_at",
    "is_past_revision",
    "past_invoice_id",
    "payment_date",
    "status",
)


def _number(value) -> Decimal:
    return Decimal(value or 0)


def items_changed(submitted: List[Dict[str, Any]], existing: List[InvoiceItem]) -> bool:
    if len(submitted) != len(existing):
        return True
    if any(not item.get("id") for item in submitted):
        return True

    by_id = {item.id: item for item in existing}
    for values in submitted:
        old = by_id.get(values["id"])
        if old is None:
            return True
        if any(
            _number(values.get(field)) != _number(getattr(old, field))
            for field in ITEM_COMPARED_FIELDS
        ):
            return True
        if values.get("name") != old.name:
            return True
    return False


def invoice_changed(submitted: Dict[str, Any], invoice: Invoice) -> bool:
    """Only fields present in the submission are compared."""
    return any(
        _number(submitted[field]) != _number(getattr(invoice, field))
        for field in MONETARY_FIELDS
        if field in submitted
    )


def _create_revision(
    db: Session,
    invoice: Invoice,
    fields: Dict[str, Any],
    items: List[Dict[str, Any]],
    today: date,
) -> Invoice:
    invoice.status = InvoiceStatus.canceled

    copied = {
        column.key: getattr(invoice, column.key)
        for column in Invoice.__table__.columns
        if column.key not in REVISION_DROPPED_FIELDS
    }
    revision = Invoice(**{
        **copied,
        **fields,
        "status": InvoiceStatus.completed,
        "is_past_revision": True,
        "past_invoice_id": invoice.id,
        "payment_date": today,
    })
    db.add(revision)
    db.flush()

    for values in items:
        data = {field: values[field] for field in ITEM_FIELDS if field in values}
        db.add(InvoiceItem(
            **data,
            booking_detail_id=values.get("booking_detail_id"),
            invoice_id=revision.id,
        ))
    db.flush()

    logger.info("Invoice %s superseded by past revision %s", invoice.id, revision.id)
    return revision


def edit_invoice(
    db: Session,
    invoice: Invoice,
    fields: Dict[str, Any],
    items: List[Dict[str, Any]],
    today: Optional[date] = None,
) -> Invoice:
    """
    Stage an edit of ``invoice`` and return the invoice now holding the data.

    Once the payment date has passed, a change in items or amounts cancels
    the invoice and creates a linked past revision instead of touching the
    settled record. Otherwise the invoice and its items are edited in place.
    """
    today = today or date.today()

    if not booking_details_exist(db, items):
        raise ValidationError(INVOICE_ITEMS_REJECTED)
    if not services_exist(db, (item["service_id"] for item in items)):
        raise ValidationError(INVOICE_ITEMS_REJECTED)

    should_revise = items_changed(items, list(invoice.items)) or invoice_changed(fields, invoice)
    if invoice.payment_date != today and should_revise:
        superseded = db.query(Invoice).filter(Invoice.past_invoice_id == invoice.id).first()
        if superseded or invoice.status == InvoiceStatus.canceled:
            raise ValidationError("Invoice has already been superseded")
        return _create_revision(db, invoice, fields, items, today)

    for field, value in fields.items():
        setattr(invoice, field, value)
    reconcile_invoice_items(db, invoice, items)
    return invoice

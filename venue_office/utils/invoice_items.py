from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from sqlalchemy.orm import Session

from venue_office.core.exceptions import INVOICE_ITEMS_REJECTED, NotFound, ValidationError
from venue_office.models.booking import BookingDetail
from venue_office.models.invoice import Invoice, InvoiceItem
from venue_office.models.service import Service

ITEM_FIELDS = (
    "service_id",
    "name",
    "type",
    "unit_amount",
    "tax_amount",
    "count",
    "subtotal_without_tax_amount",
    "subtotal_tax_amount",
    "subtotal_amount",
)


@dataclass
class ReconcileResult:
    created: int = 0
    updated: int = 0  # items whose stored values actually changed
    removed: int = 0  # deleted drafts or items detached from an invoice


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def services_exist(db: Session, service_ids: Iterable[int]) -> bool:
    ids = set(service_ids)
    if not ids:
        return True
    return db.query(Service).filter(Service.id.in_(ids)).count() == len(ids)


def booking_details_exist(db: Session, items: List[Dict[str, Any]]) -> bool:
    ids = {item["booking_detail_id"] for item in items if item.get("booking_detail_id")}
    if not ids:
        return True
    return db.query(BookingDetail).filter(BookingDetail.id.in_(ids)).count() == len(ids)


def _split(items: List[Dict[str, Any]]):
    updated = [item for item in items if item.get("id")]
    created = [item for item in items if not item.get("id")]
    return updated, created


def _overwrite(item: InvoiceItem, values: Dict[str, Any]) -> bool:
    changed = False
    for field in ITEM_FIELDS:
        if field not in values:
            continue
        if getattr(item, field) != values[field]:
            setattr(item, field, values[field])
            changed = True
    return changed


def _new_item(values: Dict[str, Any], **owner) -> InvoiceItem:
    data = {field: values[field] for field in ITEM_FIELDS if field in values}
    data["booking_detail_id"] = values.get("booking_detail_id")
    data.update(owner)
    return InvoiceItem(**data)


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


def reconcile_booking_detail_items(
    db: Session, booking_detail_id: int, items: List[Dict[str, Any]]
) -> ReconcileResult:
    """
    Make the draft items of a booking detail match ``items``.

    Items with an id are overwritten, items without one are created, and
    drafts missing from the list are deleted. Billed items are untouched.
    """
    detail = db.query(BookingDetail).filter(BookingDetail.id == booking_detail_id).first()
    if not detail:
        raise NotFound("Booking detail not found")

    referenced = {item.get("booking_detail_id") for item in items} - {None}
    if referenced and referenced != {booking_detail_id}:
        raise ValidationError(INVOICE_ITEMS_REJECTED)
    if not services_exist(db, (item["service_id"] for item in items)):
        raise ValidationError(INVOICE_ITEMS_REJECTED)

    drafts = {
        item.id: item
        for item in db.query(InvoiceItem).filter(
            InvoiceItem.booking_detail_id == booking_detail_id,
            InvoiceItem.invoice_id.is_(None),
        )
    }
    updated_items, new_items = _split(items)
    if any(item["id"] not in drafts for item in updated_items):
        raise ValidationError(INVOICE_ITEMS_REJECTED)

    result = ReconcileResult()
    kept = set()
    for values in updated_items:
        kept.add(values["id"])
        if _overwrite(drafts[values["id"]], values):
            result.updated += 1

    for item_id, item in drafts.items():
        if item_id not in kept:
            db.delete(item)
            result.removed += 1

    for values in new_items:
        db.add(_new_item({**values, "booking_detail_id": booking_detail_id}))
        result.created += 1

    db.flush()
    return result


def reconcile_invoice_items(
    db: Session, invoice: Invoice, items: List[Dict[str, Any]]
) -> ReconcileResult:
    """
    Make the items billed on ``invoice`` match ``items``.

    Items left out are detached (back to drafts of their booking detail)
    rather than deleted, so the charge itself survives.
    """
    current = {item.id: item for item in invoice.items}
    updated_items, new_items = _split(items)

    known = {
        item.id: item
        for item in db.query(InvoiceItem).filter(
            InvoiceItem.id.in_([values["id"] for values in updated_items])
        )
    } if updated_items else {}
    for values in updated_items:
        item = known.get(values["id"])
        # An item may join this invoice only from the drafts, never from another invoice
        if item is None or item.invoice_id not in (None, invoice.id):
            raise ValidationError(INVOICE_ITEMS_REJECTED)

    result = ReconcileResult()
    kept = set()
    for values in updated_items:
        item = known[values["id"]]
        kept.add(item.id)
        changed = _overwrite(item, values)
        if item.invoice_id != invoice.id:
            item.invoice_id = invoice.id
            changed = True
        if changed:
            result.updated += 1

    for item_id, item in current.items():
        if item_id not in kept:
            item.invoice_id = None
            result.removed += 1

    for values in new_items:
        db.add(_new_item(values, invoice_id=invoice.id))
        result.created += 1

    db.flush()
    return result


def find_draft_items(db: Session, booking_detail_id: int) -> List[InvoiceItem]:
    return (
        db.query(InvoiceItem)
        .filter(
            InvoiceItem.booking_detail_id == booking_detail_id,
            InvoiceItem.invoice_id.is_(None),
        )
        .all()
    )

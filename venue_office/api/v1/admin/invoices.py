from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func

from venue_office.db.session import get_db, transaction
from venue_office.api.deps import get_current_staff, get_facility
from venue_office.core.config import FacilityConfig
from venue_office.models.invoice import Invoice
from venue_office.models.people import Staff
from venue_office.schemas.invoice import (
    Invoice as InvoiceSchema,
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceFields,
    LobbyInvoiceCreate,
    AmountsRequest,
    AmountsResponse,
)
from venue_office.schemas.common import PaginatedResponse
from venue_office.utils.amounts import calculate_amounts
from venue_office.utils.invoice_revision import edit_invoice
from venue_office.utils.invoices import bill_booking_items, create_lobby_invoice, delete_invoice

router = APIRouter(prefix="/invoices", tags=["Admin - Invoices"])
lobby_router = APIRouter(prefix="/lobby-invoices", tags=["Admin - Lobby invoices"])

INVOICE_FIELDS = tuple(InvoiceFields.model_fields)


def _get_invoice(db: Session, id: int) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == id).first()
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


# ---------------------------------------------------------------------------
# Booking invoices
# ---------------------------------------------------------------------------


@router.post("/amounts", response_model=AmountsResponse)
def preview_amounts(
    data: AmountsRequest,
    db: Session = Depends(get_db),
    config: FacilityConfig = Depends(get_facility),
    current_staff: Staff = Depends(get_current_staff),
):
    tax_rate = data.tax_rate if data.tax_rate is not None else config.default_tax_rate
    return AmountsResponse(**calculate_amounts(db, data.invoice_item_ids, tax_rate))


@router.post("/", response_model=InvoiceSchema, status_code=status.HTTP_201_CREATED)
def create_invoice(
    data: InvoiceCreate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    # Adding items to an existing invoice only touches the amounts sent
    fields = data.model_dump(include=set(INVOICE_FIELDS), exclude_unset=data.invoice_id is not None)
    if data.invoice_id is None:
        fields["created_staff_id"] = data.created_staff_id or current_staff.id
    fields["updated_staff_id"] = current_staff.id
    with transaction(db):
        invoice = bill_booking_items(
            db, data.booking_id, data.invoice_item_ids, fields, invoice_id=data.invoice_id
        )
    db.refresh(invoice)
    return invoice


@router.get("/", response_model=PaginatedResponse[InvoiceSchema])
def list_invoices(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    booking_id: Optional[int] = Query(None),
    payment_date_from: Optional[date] = Query(None),
    payment_date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    query = db.query(Invoice)
    if booking_id is not None:
        query = query.filter(Invoice.booking_id == booking_id)
    if payment_date_from:
        query = query.filter(Invoice.payment_date >= payment_date_from)
    if payment_date_to:
        query = query.filter(Invoice.payment_date <= payment_date_to)

    total = query.with_entities(func.count(Invoice.id)).scalar()
    invoices = (
        query.options(selectinload(Invoice.items))
        .order_by(Invoice.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=[InvoiceSchema.model_validate(invoice) for invoice in invoices],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{id}", response_model=InvoiceSchema)
def get_invoice(
    id: int,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    return _get_invoice(db, id)


@router.patch("/{id}", response_model=InvoiceSchema)
def update_invoice(
    id: int,
    data: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    """
    Edit an invoice. After its payment date a change in items or amounts
    returns the new past revision instead of the edited invoice.
    """
    invoice = _get_invoice(db, id)
    fields = data.model_dump(exclude_unset=True, exclude={"items"})
    fields["updated_staff_id"] = data.updated_staff_id or current_staff.id
    items = [item.model_dump() for item in data.items]
    with transaction(db):
        result = edit_invoice(db, invoice, fields, items)
    db.refresh(result)
    return result


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def remove_invoice(
    id: int,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    invoice = _get_invoice(db, id)
    with transaction(db):
        delete_invoice(db, invoice)
    return {"id": id, "deleted": True}


# ---------------------------------------------------------------------------
# Lobby sales
# ---------------------------------------------------------------------------


@lobby_router.post("/", response_model=InvoiceSchema, status_code=status.HTTP_201_CREATED)
def create_lobby_sale(
    data: LobbyInvoiceCreate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    fields = data.model_dump(include=set(INVOICE_FIELDS))
    fields["created_staff_id"] = data.created_staff_id
    fields["updated_staff_id"] = current_staff.id
    items = [item.model_dump() for item in data.items]
    with transaction(db):
        invoice = create_lobby_invoice(db, fields, items)
    db.refresh(invoice)
    return invoice

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func

from venue_office.db.session import get_db, transaction
from venue_office.api.deps import get_current_staff, get_facility
from venue_office.core.config import FacilityConfig
from venue_office.core.exceptions import CANCEL_INFO_INCOMPLETE, NotFound, ValidationError
from venue_office.models.booking import Booking, BookingDetail, BookingDetailStatus
from venue_office.models.people import Staff
from venue_office.schemas.booking import (
    Booking as BookingSchema,
    BookingSave,
    BookingDetail as BookingDetailSchema,
    BookingDetailUpdate,
    BookingDetailCancel,
    BookingDetailCancelResponse,
    BookingDetailValidate,
)
from venue_office.schemas.common import Availability, PaginatedResponse
from venue_office.schemas.invoice import BookingDetailItems, ReconcileResult
from venue_office.utils.booking_status import update_booking_detail
from venue_office.utils.bookings import is_bookable, save_booking
from venue_office.utils.cancellation import cancel_booking_detail
from venue_office.utils.invoice_items import reconcile_booking_detail_items

router = APIRouter(prefix="/bookings", tags=["Admin - Bookings"])
detail_router = APIRouter(prefix="/booking-details", tags=["Admin - Booking details"])
item_router = APIRouter(prefix="/invoice-items", tags=["Admin - Invoice items"])


def _get_detail(db: Session, id: int) -> BookingDetail:
    detail = db.query(BookingDetail).filter(BookingDetail.id == id).first()
    if not detail:
        raise HTTPException(status_code=404, detail="Booking detail not found")
    return detail


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


@router.post("/", response_model=BookingSchema)
def create_or_update_booking(
    data: BookingSave,
    db: Session = Depends(get_db),
    config: FacilityConfig = Depends(get_facility),
    current_staff: Staff = Depends(get_current_staff),
):
    """Create a booking, or edit one when the payload carries its id."""
    with transaction(db):
        booking = save_booking(db, data.model_dump(exclude_unset=True), config)
    db.refresh(booking)
    return booking


@router.get("/", response_model=PaginatedResponse[BookingSchema])
def list_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    customer_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None, description="Detail start date from (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, description="Detail start date to (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    query = db.query(Booking)
    if customer_id is not None:
        query = query.filter(Booking.customer_id == customer_id)
    if date_from or date_to:
        query = query.join(BookingDetail, BookingDetail.booking_id == Booking.id)
        if date_from:
            query = query.filter(BookingDetail.start_datetime >= datetime.combine(date_from, datetime.min.time()))
        if date_to:
            query = query.filter(BookingDetail.start_datetime <= datetime.combine(date_to, datetime.max.time()))
        query = query.distinct()

    total = query.with_entities(func.count(func.distinct(Booking.id))).scalar()
    bookings = (
        query.options(selectinload(Booking.details))
        .order_by(Booking.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=[BookingSchema.model_validate(booking) for booking in bookings],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{id}", response_model=BookingSchema)
def get_booking(
    id: int,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    booking = db.query(Booking).filter(Booking.id == id).first()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


# ---------------------------------------------------------------------------
# Booking details
# ---------------------------------------------------------------------------


@detail_router.post("/validate", response_model=Availability)
def validate_booking_detail(
    data: BookingDetailValidate,
    db: Session = Depends(get_db),
    config: FacilityConfig = Depends(get_facility),
    current_staff: Staff = Depends(get_current_staff),
):
    valid = is_bookable(
        db,
        data.room_id,
        data.start_datetime,
        data.end_datetime,
        config,
        booking_detail_id=data.id,
        status=data.status,
    )
    return Availability(valid=valid)


@detail_router.get("/{id}", response_model=BookingDetailSchema)
def get_booking_detail(
    id: int,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    return _get_detail(db, id)


@detail_router.patch("/{id}", response_model=BookingDetailSchema)
def edit_booking_detail(
    id: int,
    data: BookingDetailUpdate,
    db: Session = Depends(get_db),
    config: FacilityConfig = Depends(get_facility),
    current_staff: Staff = Depends(get_current_staff),
):
    detail = _get_detail(db, id)
    with transaction(db):
        update_booking_detail(db, detail, data.model_dump(exclude_unset=True), config)
    db.refresh(detail)
    return detail


@detail_router.post("/{id}/cancel", response_model=BookingDetailCancelResponse)
def cancel_detail(
    id: int,
    data: BookingDetailCancel,
    db: Session = Depends(get_db),
    config: FacilityConfig = Depends(get_facility),
    current_staff: Staff = Depends(get_current_staff),
):
    detail = _get_detail(db, id)
    if detail.status == BookingDetailStatus.canceled or detail.cancel_datetime:
        raise ValidationError("Booking detail is already canceled")
    if not data.cancel_requester_name.strip():
        raise ValidationError(CANCEL_INFO_INCOMPLETE)
    if not db.query(Staff).filter(Staff.id == data.cancel_staff_id).first():
        raise NotFound("Staff not found")

    with transaction(db):
        detail.cancel_type = data.cancel_type
        if data.cancellation_fee_days is not None:
            detail.cancellation_fee_days = data.cancellation_fee_days
        cancel_booking_detail(
            db,
            detail,
            config,
            cancel_staff_id=data.cancel_staff_id,
            cancel_requester_name=data.cancel_requester_name,
            cancel_requester_tel=data.cancel_requester_tel,
        )
    db.refresh(detail)
    return BookingDetailCancelResponse(
        id=detail.id,
        status=detail.status,
        cancel_datetime=detail.cancel_datetime,
        cancel_price=detail.cancel_price,
    )


# ---------------------------------------------------------------------------
# Draft invoice items of a booking detail
# ---------------------------------------------------------------------------


@item_router.post("/", response_model=ReconcileResult)
def save_invoice_items(
    data: BookingDetailItems,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    with transaction(db):
        result = reconcile_booking_detail_items(
            db, data.booking_detail_id, [item.model_dump() for item in data.items]
        )
    return ReconcileResult(created=result.created, updated=result.updated, removed=result.removed)

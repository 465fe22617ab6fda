import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from venue_office.core.config import FacilityConfig
from venue_office.core.exceptions import (
    BOOKING_CREATE_BLOCKED,
    BOOKING_UPDATE_BLOCKED,
    EQUIPMENT_UNAVAILABLE,
    HOLIDAY_BLOCKED,
    NotFound,
    ROOM_CHARGE_MISSING,
    SchedulingConflict,
    ValidationError,
)
from venue_office.models.booking import (
    Booking,
    BookingDetail,
    BookingDetailService,
    BookingDetailStatus,
)
from venue_office.models.holiday import Holiday
from venue_office.models.invoice import InvoiceItem
from venue_office.models.people import Customer, Staff
from venue_office.models.room import Room, RoomCharge
from venue_office.models.service import Service
from venue_office.utils.booking_status import update_booking_detail
from venue_office.utils.overlap import NON_BLOCKING_STATUSES, has_conflict, intervals_conflict
from venue_office.utils.room_charges import find_room_charge
from venue_office.utils.tariff import build_room_invoice_items, price_booking_detail

logger = logging.getLogger(__name__)

# Equipment needs this much slack around a booking for setup and collection
EQUIPMENT_BUFFER = timedelta(minutes=30)

OVERLAP_CHECKED_STATUSES = (BookingDetailStatus.official, BookingDetailStatus.temporary)

DETAIL_FIELDS = (
    "room_id",
    "start_datetime",
    "end_datetime",
    "status",
    "guest_count",
    "layout_type",
    "scheduled_reply_date",
    "cancel_type",
    "cancellation_fee_days",
)

# Status changes of an existing detail go through the transition rules instead
EDITED_DETAIL_FIELDS = tuple(field for field in DETAIL_FIELDS if field != "status")


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def find_holiday(db: Session, start: datetime, end: datetime) -> Optional[Holiday]:
    return db.query(Holiday).filter(
        Holiday.date >= start.date(), Holiday.date <= end.date()
    ).first()


def is_bookable(
    db: Session,
    room_id: int,
    start: datetime,
    end: datetime,
    config: FacilityConfig,
    booking_detail_id: Optional[int] = None,
    status: Optional[int] = None,
) -> bool:
    """Answer for the booking form: no holiday in range and the room is free."""
    if find_holiday(db, start, end):
        return False
    return not has_conflict(
        db, room_id, start, end, config, exclude_id=booking_detail_id, status=status
    )


def available_stock(
    db: Session,
    service: Service,
    start: datetime,
    end: datetime,
    exclude_booking_detail_id: Optional[int] = None,
) -> Optional[int]:
    """Units of a piece of equipment still free around [start, end); None means unlimited."""
    if service.stock is None:
        return None

    query = (
        db.query(func.coalesce(func.sum(BookingDetailService.usage_count), 0))
        .join(BookingDetail, BookingDetail.id == BookingDetailService.booking_detail_id)
        .filter(
            BookingDetailService.service_id == service.id,
            BookingDetail.cancel_datetime.is_(None),
            BookingDetail.status.notin_(NON_BLOCKING_STATUSES),
            BookingDetail.start_datetime < end + EQUIPMENT_BUFFER,
            BookingDetail.end_datetime > start - EQUIPMENT_BUFFER,
        )
    )
    if exclude_booking_detail_id is not None:
        query = query.filter(BookingDetail.id != exclude_booking_detail_id)
    return service.stock - int(query.scalar())


def _check_equipment(
    db: Session,
    services: List[Dict[str, Any]],
    main: Dict[str, Any],
) -> Dict[int, Service]:
    ids = {service["service_id"] for service in services}
    found = {s.id: s for s in db.query(Service).filter(Service.id.in_(ids))} if ids else {}
    if len(found) != len(ids):
        raise NotFound("Service not found")

    for requested in services:
        remaining = available_stock(
            db,
            found[requested["service_id"]],
            main["start_datetime"],
            main["end_datetime"],
            exclude_booking_detail_id=main.get("id"),
        )
        if remaining is not None and requested.get("usage_count", 1) > remaining:
            raise ValidationError(EQUIPMENT_UNAVAILABLE)
    return found


def _check_schedule(
    db: Session, details: List[Dict[str, Any]], config: FacilityConfig, editing: bool
) -> None:
    message = BOOKING_UPDATE_BLOCKED if editing else BOOKING_CREATE_BLOCKED
    checked = [
        detail for index, detail in enumerate(details)
        if index == 0
        or detail.get("status", BookingDetailStatus.official) in OVERLAP_CHECKED_STATUSES
    ]
    for index, detail in enumerate(checked):
        if has_conflict(
            db,
            detail["room_id"],
            detail["start_datetime"],
            detail["end_datetime"],
            config,
            exclude_id=detail.get("id"),
            status=detail.get("status"),
        ):
            raise SchedulingConflict(message)

        # Details of the same submission must not collide with each other either
        targets = {detail["room_id"], *_set_members(detail["room_id"], config)}
        for other in checked[index + 1:]:
            if other["room_id"] in targets and intervals_conflict(
                detail["start_datetime"],
                detail["end_datetime"],
                other["start_datetime"],
                other["end_datetime"],
            ):
                raise SchedulingConflict(message)


def _set_members(room_id: int, config: FacilityConfig):
    if room_id == config.room_set_id:
        return config.room_in_set_ids
    if room_id in config.room_in_set_ids:
        return (config.room_set_id,)
    return ()


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


def _snapshot_tariff(detail: BookingDetail, charge: RoomCharge, config: FacilityConfig) -> None:
    detail.basic_amount = charge.basic_price
    detail.extension_amount = charge.extension_price
    detail.all_day_amount = charge.all_day_price
    detail.subtotal_type = charge.subtotal_type
    detail.tax_rate = config.default_tax_rate


def _add_room_items(
    db: Session,
    detail: BookingDetail,
    fixed_services: Dict[int, Service],
    config: FacilityConfig,
    billed_service_ids: Iterable[int] = (),
) -> None:
    incurred = fixed_services.get(config.incurred_fee_service_id)
    price = price_booking_detail(detail, incurred.unit_price if incurred else 0, config)
    billed = set(billed_service_ids)
    for item in build_room_invoice_items(price, fixed_services, booking_detail_id=detail.id):
        if item.service_id not in billed:
            db.add(item)


def _billed_room_service_ids(db: Session, detail: BookingDetail, config: FacilityConfig):
    rows = db.query(InvoiceItem.service_id).filter(
        InvoiceItem.booking_detail_id == detail.id,
        InvoiceItem.invoice_id.isnot(None),
        InvoiceItem.service_id.in_(config.room_fee_service_ids),
    )
    return {service_id for service_id, in rows}


def _replace_equipment(
    db: Session, detail: BookingDetail, services: List[Dict[str, Any]], found: Dict[int, Service]
) -> None:
    detail.services = [
        BookingDetailService(
            service_id=requested["service_id"],
            usage_count=requested.get("usage_count", 1),
            price=found[requested["service_id"]].unit_price * requested.get("usage_count", 1),
        )
        for requested in services
    ]


# ---------------------------------------------------------------------------
# Create / edit
# ---------------------------------------------------------------------------


def save_booking(
    db: Session,
    values: Dict[str, Any],
    config: FacilityConfig,
    today: Optional[date] = None,
) -> Booking:
    """
    Create a booking, or edit one when ``values["id"]`` is set.

    The first detail is the main one; it is re-priced on every edit. Other
    details with an id are left alone, the rest are created and priced
    from the room charge valid today.
    """
    today = today or date.today()
    details = values["details"]
    services = values.get("services") or []
    booking_id = values.get("id")
    editing = bool(booking_id and details and details[0].get("id"))

    if not details:
        raise ValidationError("A booking needs at least one booking detail")
    if booking_id and not editing:
        raise ValidationError("The main booking detail of an existing booking needs its id")
    modifiable = [detail for index, detail in enumerate(details) if index == 0 or not detail.get("id")]

    if not db.query(Customer).filter(Customer.id == values["customer_id"]).first():
        raise NotFound("Customer not found")
    for staff_id in {values["created_staff_id"], values.get("updated_staff_id") or values["created_staff_id"]}:
        if not db.query(Staff).filter(Staff.id == staff_id).first():
            raise NotFound("Staff not found")
    room_ids = {detail["room_id"] for detail in modifiable}
    if db.query(Room).filter(Room.id.in_(room_ids)).count() != len(room_ids):
        raise NotFound("Room not found")

    main_existing = None
    if editing:
        main_existing = db.query(BookingDetail).filter(
            BookingDetail.id == details[0]["id"], BookingDetail.booking_id == booking_id
        ).first()
        if not main_existing:
            raise NotFound("Booking detail not found")

    charges = []
    for detail in modifiable:
        # The main detail keeps the tariff valid when it was first booked
        priced_on = today
        if detail.get("id") and main_existing is not None and main_existing.created_at:
            priced_on = main_existing.created_at.date()
        charge = find_room_charge(db, detail["room_id"], priced_on)
        if not charge:
            raise ValidationError(ROOM_CHARGE_MISSING)
        charges.append(charge)

    for detail in modifiable:
        if find_holiday(db, detail["start_datetime"], detail["end_datetime"]):
            raise SchedulingConflict(HOLIDAY_BLOCKED)
    _check_schedule(db, modifiable, config, editing)
    equipment = _check_equipment(db, services, details[0])

    fixed_services = {
        service.id: service
        for service in db.query(Service).filter(Service.id.in_(config.fixed_service_ids))
    }
    if any(service_id not in fixed_services for service_id in config.room_fee_service_ids):
        raise NotFound("Room fee service not found")

    header = {
        key: values.get(key)
        for key in ("customer_id", "contact_name", "contact_tel", "note")
        if key in values
    }
    if editing:
        booking = db.query(Booking).filter(Booking.id == booking_id).first()
        for key, value in header.items():
            setattr(booking, key, value)
        booking.updated_staff_id = values.get("updated_staff_id") or values["created_staff_id"]

        for field in EDITED_DETAIL_FIELDS:
            if field in details[0]:
                setattr(main_existing, field, details[0][field])
        _snapshot_tariff(main_existing, charges[0], config)
        db.flush()

        # A canceled detail is charged through its cancellation fee only
        if main_existing.status != BookingDetailStatus.canceled:
            # Only unbilled room fee drafts are regenerated
            db.query(InvoiceItem).filter(
                InvoiceItem.booking_detail_id == main_existing.id,
                InvoiceItem.invoice_id.is_(None),
                InvoiceItem.service_id.in_(config.room_fee_service_ids),
            ).delete(synchronize_session="fetch")
            _add_room_items(
                db,
                main_existing,
                fixed_services,
                config,
                billed_service_ids=_billed_room_service_ids(db, main_existing, config),
            )
            db.flush()

        target = details[0].get("status")
        if target is not None and target != main_existing.status:
            update_booking_detail(db, main_existing, {"status": target}, config, today=today)
        main = main_existing
        new_details = list(zip(modifiable[1:], charges[1:]))
    else:
        booking = Booking(
            **header,
            created_staff_id=values["created_staff_id"],
            updated_staff_id=values["created_staff_id"],
        )
        db.add(booking)
        db.flush()
        main = None
        new_details = list(zip(modifiable, charges))

    for detail_values, charge in new_details:
        detail = BookingDetail(
            booking_id=booking.id,
            **{field: detail_values[field] for field in DETAIL_FIELDS if field in detail_values},
        )
        _snapshot_tariff(detail, charge, config)
        db.add(detail)
        db.flush()
        _add_room_items(db, detail, fixed_services, config)
        if main is None:
            main = detail

    _replace_equipment(db, main, services, equipment)
    db.flush()

    logger.info("Booking %s %s", booking.id, "updated" if editing else "created")
    return booking

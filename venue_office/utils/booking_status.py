from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from venue_office.core.config import FacilityConfig
from venue_office.core.exceptions import (
    BOOKING_UPDATE_BLOCKED,
    SchedulingConflict,
    ValidationError,
)
from venue_office.models.booking import BookingDetail, BookingDetailStatus as Status
from venue_office.utils.cancellation import cancel_booking_detail
from venue_office.utils.overlap import has_conflict

# Sources missing from this table may move to any status
ALLOWED_TRANSITIONS = {
    Status.canceled: frozenset({Status.complete_payment, Status.withhold_payment, Status.canceled}),
    Status.complete_payment: frozenset({Status.complete_payment, Status.withhold_payment}),
    Status.withhold_payment: frozenset({Status.complete_payment, Status.withhold_payment}),
}

CANCEL_FIELDS = (
    "cancel_requester_name",
    "cancel_requester_tel",
    "cancel_staff_id",
    "cancel_datetime",
    "status",
)


def can_transition(current: int, target: int) -> bool:
    if target == Status.blocked:
        return False
    allowed = ALLOWED_TRANSITIONS.get(Status(current))
    return allowed is None or Status(target) in allowed


def _apply(detail: BookingDetail, changes: Dict[str, Any]) -> None:
    for field, value in changes.items():
        setattr(detail, field, value)


def update_booking_detail(
    db: Session,
    detail: BookingDetail,
    changes: Dict[str, Any],
    config: FacilityConfig,
    today: Optional[date] = None,
) -> BookingDetail:
    """
    Stage an edit of a booking detail.

    Moving into canceled goes through the cancellation fee flow; leaving
    waiting-cancel re-checks the room for conflicting bookings.
    """
    target = changes.get("status")
    if target is None:
        _apply(detail, changes)
        return detail

    if not can_transition(detail.status, target):
        raise ValidationError(
            f"Status cannot change from {Status(detail.status).name} to {Status(target).name}"
        )

    if target == Status.canceled and detail.status != Status.canceled:
        cancel_datetime = changes.get("cancel_datetime")
        cancel_booking_detail(
            db,
            detail,
            config,
            cancel_date=cancel_datetime.date() if cancel_datetime else today,
            cancel_staff_id=changes.get("cancel_staff_id"),
            cancel_requester_name=changes.get("cancel_requester_name"),
            cancel_requester_tel=changes.get("cancel_requester_tel"),
        )
        _apply(detail, {k: v for k, v in changes.items() if k not in CANCEL_FIELDS})
        return detail

    if (
        detail.status == Status.waiting_cancel
        and target != Status.waiting_cancel
        and has_conflict(
            db,
            detail.room_id,
            detail.start_datetime,
            detail.end_datetime,
            config,
            exclude_id=detail.id,
        )
    ):
        raise SchedulingConflict(BOOKING_UPDATE_BLOCKED)

    _apply(detail, changes)
    return detail

import logging
from datetime import date, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from venue_office.core.exceptions import (
    InvariantViolation,
    NotFound,
    ROOM_CHARGE_REJECTED,
    ValidationError,
)
from venue_office.models.room import Room, RoomCharge

logger = logging.getLogger(__name__)


def find_room_charge(db: Session, room_id: int, on_date: date) -> Optional[RoomCharge]:
    """The tariff record of a room valid on ``on_date``."""
    return (
        db.query(RoomCharge)
        .filter(
            RoomCharge.room_id == room_id,
            RoomCharge.start_date <= on_date,
            or_(RoomCharge.end_date.is_(None), RoomCharge.end_date >= on_date),
        )
        .order_by(RoomCharge.start_date.desc())
        .first()
    )


def schedule_room_charge(
    db: Session, values: Dict[str, Any], today: Optional[date] = None
) -> RoomCharge:
    """
    Add a tariff that takes effect on ``values["start_date"]``.

    The open-ended record in force at that date is closed the day before,
    so a room never carries two open-ended records.
    """
    today = today or date.today()
    room_id = values["room_id"]
    start_date = values["start_date"]

    if not db.query(Room).filter(Room.id == room_id).first():
        raise NotFound("Room not found")
    if start_date < today:
        raise ValidationError(ROOM_CHARGE_REJECTED)

    # A later record already scheduled would leave two open-ended records
    later = db.query(RoomCharge).filter(
        RoomCharge.room_id == room_id,
        RoomCharge.start_date >= start_date,
    ).first()
    if later:
        raise ValidationError(ROOM_CHARGE_REJECTED)

    closed = db.query(RoomCharge).filter(
        RoomCharge.room_id == room_id,
        RoomCharge.start_date < start_date,
        RoomCharge.end_date.isnot(None),
        RoomCharge.end_date >= start_date,
    ).first()
    if closed:
        raise ValidationError(ROOM_CHARGE_REJECTED)

    open_ended = db.query(RoomCharge).filter(
        RoomCharge.room_id == room_id,
        RoomCharge.end_date.is_(None),
    ).all()
    if len(open_ended) > 1:
        raise InvariantViolation(f"Room {room_id} has more than one open-ended charge")
    for current in open_ended:
        current.end_date = start_date - timedelta(days=1)
        logger.info("Room charge %s closed on %s", current.id, current.end_date)

    charge = RoomCharge(**values)
    db.add(charge)
    db.flush()
    return charge


def delete_room_charge(db: Session, charge: RoomCharge, today: Optional[date] = None) -> None:
    """Drop a scheduled tariff that has not started; the previous record reopens."""
    today = today or date.today()
    if charge.start_date <= today:
        raise ValidationError(ROOM_CHARGE_REJECTED)

    previous = (
        db.query(RoomCharge)
        .filter(
            RoomCharge.room_id == charge.room_id,
            RoomCharge.end_date == charge.start_date - timedelta(days=1),
        )
        .first()
    )
    if previous and charge.end_date is None:
        previous.end_date = None
    db.delete(charge)
    db.flush()

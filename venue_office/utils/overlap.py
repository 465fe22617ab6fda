from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from venue_office.core.config import FacilityConfig
from venue_office.models.booking import BookingDetail, BookingDetailStatus

# Details in these statuses never block a room
NON_BLOCKING_STATUSES = (
    BookingDetailStatus.waiting_cancel,
    BookingDetailStatus.canceled,
)


def targeted_room_ids(room_id: int, config: FacilityConfig) -> List[int]:
    """
    Rooms that must be free for ``room_id`` to be booked.

    The room-set occupies every sub-room; a sub-room only collides with
    itself and the room-set, not with its sibling sub-rooms.
    """
    room_set_id = config.room_set_id
    if room_id == room_set_id:
        return [room_set_id, *config.room_in_set_ids]
    if room_id in config.room_in_set_ids:
        return [room_id, room_set_id]
    return [room_id]


def intervals_conflict(
    start: datetime, end: datetime, other_start: datetime, other_end: datetime
) -> bool:
    """Same predicate as ``find_conflict``; touching intervals do not conflict."""
    return (
        start < other_start < end
        or start < other_end < end
        or (other_start <= start and end <= other_end)
    )


def find_conflict(
    db: Session,
    room_id: int,
    start: datetime,
    end: datetime,
    config: FacilityConfig,
    exclude_id: Optional[int] = None,
) -> Optional[BookingDetail]:
    """Return an active booking detail occupying the room (or its room-set) in [start, end)."""
    query = db.query(BookingDetail).filter(
        BookingDetail.room_id.in_(targeted_room_ids(room_id, config)),
        BookingDetail.cancel_datetime.is_(None),
        BookingDetail.status.notin_(NON_BLOCKING_STATUSES),
        or_(
            and_(BookingDetail.start_datetime > start, BookingDetail.start_datetime < end),
            and_(BookingDetail.end_datetime > start, BookingDetail.end_datetime < end),
            and_(BookingDetail.start_datetime <= start, BookingDetail.end_datetime >= end),
        ),
    )
    if exclude_id is not None:
        query = query.filter(BookingDetail.id != exclude_id)
    return query.first()


def has_conflict(
    db: Session,
    room_id: int,
    start: datetime,
    end: datetime,
    config: FacilityConfig,
    exclude_id: Optional[int] = None,
    status: Optional[int] = None,
) -> bool:
    if status == BookingDetailStatus.waiting_cancel:
        return False
    return find_conflict(db, room_id, start, end, config, exclude_id) is not None

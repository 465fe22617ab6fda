from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from sqlalchemy import func

from venue_office.db.session import get_db, transaction
from venue_office.api.deps import get_current_staff
from venue_office.models.people import Staff
from venue_office.models.room import Room, RoomCharge
from venue_office.schemas.room import (
    RoomCreate,
    RoomUpdate,
    Room as RoomSchema,
    RoomChargeCreate,
    RoomCharge as RoomChargeSchema,
)
from venue_office.schemas.common import PaginatedResponse
from venue_office.utils.room_charges import delete_room_charge, schedule_room_charge

router = APIRouter(prefix="/rooms", tags=["Admin - Rooms"])
charge_router = APIRouter(prefix="/room-charges", tags=["Admin - Room charges"])

CHARGE_FIELDS = ("basic_price", "extension_price", "all_day_price", "subtotal_type")


# ---------------------------------------------------------------------------
# Room CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=RoomSchema, status_code=status.HTTP_201_CREATED)
def create_room(
    data: RoomCreate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    values = data.model_dump()
    charge = {field: values.pop(field) for field in CHARGE_FIELDS}
    with transaction(db):
        room = Room(**values)
        db.add(room)
        db.flush()
        db.add(RoomCharge(room_id=room.id, start_date=date.today(), **charge))
    db.refresh(room)
    return room


@router.get("/", response_model=PaginatedResponse[RoomSchema])
def list_rooms(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    query = db.query(Room)
    if not include_inactive:
        query = query.filter(Room.is_active == True)

    total = query.with_entities(func.count(Room.id)).scalar()
    rooms = query.order_by(Room.id).offset((page - 1) * limit).limit(limit).all()

    return PaginatedResponse(
        data=[RoomSchema.model_validate(room) for room in rooms],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{id}", response_model=RoomSchema)
def get_room(
    id: int,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    room = db.query(Room).filter(Room.id == id).first()
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return room


@router.patch("/{id}", response_model=RoomSchema)
def update_room(
    id: int,
    data: RoomUpdate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    room = db.query(Room).filter(Room.id == id).first()
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")

    # Rooms are disabled through is_active, never deleted
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(room, field, value)

    db.commit()
    db.refresh(room)
    return room


# ---------------------------------------------------------------------------
# Room charges
# ---------------------------------------------------------------------------


@charge_router.post("/", response_model=RoomChargeSchema, status_code=status.HTTP_201_CREATED)
def create_room_charge(
    data: RoomChargeCreate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    with transaction(db):
        charge = schedule_room_charge(db, data.model_dump())
    db.refresh(charge)
    return charge


@charge_router.get("/", response_model=List[RoomChargeSchema])
def list_room_charges(
    room_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    query = db.query(RoomCharge)
    if room_id is not None:
        query = query.filter(RoomCharge.room_id == room_id)
    return query.order_by(RoomCharge.room_id, RoomCharge.start_date).all()


@charge_router.delete("/{id}", status_code=status.HTTP_200_OK)
def remove_room_charge(
    id: int,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    charge = db.query(RoomCharge).filter(RoomCharge.id == id).first()
    if not charge:
        raise HTTPException(status_code=404, detail="Room charge not found")

    with transaction(db):
        delete_room_charge(db, charge)
    return {"id": id, "deleted": True}

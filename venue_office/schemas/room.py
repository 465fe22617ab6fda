from typing import Optional, List
from pydantic import BaseModel
from decimal import Decimal
from datetime import date


# Room charge: tariff valid from start_date to end_date (null = current)
class RoomChargeCreate(BaseModel):
    room_id: int
    basic_price: Decimal
    extension_price: Decimal
    all_day_price: Decimal
    subtotal_type: int = 2
    start_date: date


class RoomCharge(RoomChargeCreate):
    id: int
    end_date: Optional[date] = None

    class Config:
        from_attributes = True


# Room: Create / Update
class RoomCreate(BaseModel):
    name: str
    area: Optional[Decimal] = None
    capacity: Optional[int] = None
    # Initial tariff, effective today
    basic_price: Decimal
    extension_price: Decimal
    all_day_price: Decimal
    subtotal_type: int = 2


class RoomUpdate(BaseModel):
    name: Optional[str] = None
    area: Optional[Decimal] = None
    capacity: Optional[int] = None
    is_active: Optional[bool] = None


class Room(BaseModel):
    id: int
    name: str
    area: Optional[Decimal] = None
    capacity: Optional[int] = None
    is_active: bool
    charges: List[RoomCharge] = []

    class Config:
        from_attributes = True

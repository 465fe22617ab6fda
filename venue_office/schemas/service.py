from typing import Optional
from pydantic import BaseModel, field_validator
from decimal import Decimal

from venue_office.models.service import LocationType, ServiceType, SubtotalType


class ServiceCreate(BaseModel):
    name: str
    type: int
    subtotal_type: int = SubtotalType.consumption_tax
    location_type: int = LocationType.meeting_room
    unit_price: Decimal = Decimal(0)
    stock: Optional[int] = None

    @field_validator("type")
    @classmethod
    def known_type(cls, v):
        ServiceType(v)
        return v

    @field_validator("subtotal_type")
    @classmethod
    def known_subtotal_type(cls, v):
        SubtotalType(v)
        return v

    @field_validator("location_type")
    @classmethod
    def known_location_type(cls, v):
        LocationType(v)
        return v


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    unit_price: Optional[Decimal] = None
    stock: Optional[int] = None
    is_active: Optional[bool] = None


class Service(ServiceCreate):
    id: int
    is_active: bool

    class Config:
        from_attributes = True

import enum
from sqlalchemy import Column, String, Boolean, DateTime, func, DECIMAL, Integer
from venue_office.db.session import Base

class ServiceType(enum.IntEnum):
    basic_fee = 1
    overtime_fee = 2
    food = 3
    box_lunch = 4
    drinks = 5
    cancel_fee = 6
    delivery_fee = 7
    copy_fee = 8
    bringing_fee = 9
    prepaid_fee = 10
    device_fee = 11
    device = 12


class SubtotalType(enum.IntEnum):
    service_fee = 1       # service-fee taxable
    consumption_tax = 2   # consumption-tax taxable
    non_taxable = 3


class LocationType(enum.IntEnum):
    lobby = 1
    meeting_room = 2


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    type = Column(Integer, nullable=False, index=True)  # ServiceType
    subtotal_type = Column(Integer, nullable=False, default=SubtotalType.consumption_tax)
    location_type = Column(Integer, nullable=False, default=LocationType.meeting_room)
    unit_price = Column(DECIMAL(12, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=True)  # None = unlimited
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())

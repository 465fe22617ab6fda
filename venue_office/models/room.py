from sqlalchemy import Column, String, Boolean, DateTime, func, DECIMAL, Integer, ForeignKey, Date
from sqlalchemy.orm import relationship
from venue_office.db.session import Base

class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    area = Column(DECIMAL(8, 2), nullable=True)  # tsubo
    capacity = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True)  # soft-disabled, never deleted once booked
    created_at = Column(DateTime, server_default=func.now())

    charges = relationship("RoomCharge", back_populates="room", order_by="RoomCharge.start_date")


class RoomCharge(Base):
    __tablename__ = "room_charges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    basic_price = Column(DECIMAL(12, 2), nullable=False)
    extension_price = Column(DECIMAL(12, 2), nullable=False)
    all_day_price = Column(DECIMAL(12, 2), nullable=False)
    subtotal_type = Column(Integer, nullable=False, default=2)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=True)  # null = open-ended / current
    created_at = Column(DateTime, server_default=func.now())

    room = relationship("Room", back_populates="charges")

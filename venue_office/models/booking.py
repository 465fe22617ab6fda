import enum
from sqlalchemy import Column, String, DateTime, func, DECIMAL, Integer, ForeignKey, Text
from sqlalchemy.orm import relationship
from venue_office.db.session import Base

class BookingDetailStatus(enum.IntEnum):
    blocked = -1  # display only, for rooms hidden behind a room-set booking
    official = 1
    temporary = 2
    waiting_cancel = 3
    check_in = 4
    withhold_payment = 5
    complete_payment = 6
    canceled = 7


class CancelType(enum.IntEnum):
    normal = 1
    student = 2
    others = 3


class LayoutType(enum.IntEnum):
    hollow_square = 1
    s_shape = 2
    interview = 3
    banquet = 4
    theater = 5
    others = 6


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    created_staff_id = Column(Integer, ForeignKey("staffs.id"), nullable=False)
    updated_staff_id = Column(Integer, ForeignKey("staffs.id"), nullable=False)
    contact_name = Column(String(255), nullable=True)
    contact_tel = Column(String(30), nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer")
    details = relationship("BookingDetail", back_populates="booking", order_by="BookingDetail.id")


class BookingDetail(Base):
    __tablename__ = "booking_details"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    start_datetime = Column(DateTime, nullable=False, index=True)
    end_datetime = Column(DateTime, nullable=False)
    status = Column(Integer, nullable=False, default=BookingDetailStatus.official, index=True)
    guest_count = Column(Integer, nullable=False, default=0)
    layout_type = Column(Integer, nullable=True)
    scheduled_reply_date = Column(DateTime, nullable=True)

    # Tariff snapshot copied from the RoomCharge valid when the detail was priced
    basic_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    extension_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    all_day_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    tax_rate = Column(DECIMAL(5, 2), nullable=False, default=10)
    subtotal_type = Column(Integer, nullable=True)

    discount_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    deposit_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    total_service_without_tax_amount = Column(DECIMAL(12, 2), nullable=False, default=0)

    cancel_type = Column(Integer, nullable=True)
    cancellation_fee_days = Column(Integer, nullable=True)  # day limit for CancelType.others
    cancel_datetime = Column(DateTime, nullable=True)
    cancel_price = Column(DECIMAL(12, 2), nullable=True)
    cancel_staff_id = Column(Integer, ForeignKey("staffs.id"), nullable=True)
    cancel_requester_name = Column(String(255), nullable=True)
    cancel_requester_tel = Column(String(30), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="details")
    room = relationship("Room")
    invoice_items = relationship("InvoiceItem", back_populates="booking_detail")
    services = relationship(
        "BookingDetailService", back_populates="booking_detail", cascade="all, delete-orphan"
    )


class BookingDetailService(Base):
    __tablename__ = "booking_detail_services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_detail_id = Column(Integer, ForeignKey("booking_details.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    usage_count = Column(Integer, nullable=False, default=1)
    price = Column(DECIMAL(12, 2), nullable=False, default=0)

    booking_detail = relationship("BookingDetail", back_populates="services")
    service = relationship("Service")

import enum
from sqlalchemy import Column, String, Boolean, DateTime, func, DECIMAL, Integer, ForeignKey, Date
from sqlalchemy.orm import relationship
from venue_office.db.session import Base

class InvoiceStatus(enum.IntEnum):
    canceled = 0
    completed = 1


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True, index=True)  # null = lobby sale
    status = Column(Integer, nullable=False, default=InvoiceStatus.completed, index=True)
    payment_date = Column(Date, nullable=True, index=True)
    due_date = Column(Date, nullable=True)
    voucher_num = Column(String(30), nullable=True)
    segment_num = Column(String(30), nullable=True)
    proviso = Column(Integer, nullable=True)
    recipient_name = Column(String(255), nullable=True)

    total_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    total_without_tax_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    total_tax_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    service_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    service_without_tax_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    discount_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    discount_without_tax_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    cash_payment_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    card_payment_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    credit_payment_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    deposit_amount = Column(DECIMAL(12, 2), nullable=False, default=0)

    # Revision chain: a correction made after payment_date points at the invoice it replaces
    is_past_revision = Column(Boolean, nullable=False, default=False)
    past_invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True, unique=True, index=True)

    created_staff_id = Column(Integer, ForeignKey("staffs.id"), nullable=True)
    updated_staff_id = Column(Integer, ForeignKey("staffs.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    items = relationship("InvoiceItem", back_populates="invoice", order_by="InvoiceItem.id")
    past_invoice = relationship("Invoice", remote_side=[id])


class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_detail_id = Column(Integer, ForeignKey("booking_details.id"), nullable=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True, index=True)  # null = draft
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    name = Column(String(255), nullable=False)
    type = Column(Integer, nullable=False, index=True)  # ServiceType
    unit_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    tax_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    count = Column(DECIMAL(8, 2), nullable=False, default=1)
    subtotal_without_tax_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    subtotal_tax_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    subtotal_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    invoice = relationship("Invoice", back_populates="items")
    booking_detail = relationship("BookingDetail", back_populates="invoice_items")
    service = relationship("Service")

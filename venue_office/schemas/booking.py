from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator
from decimal import Decimal
from datetime import datetime

from venue_office.models.booking import BookingDetailStatus, CancelType


# Booking detail as submitted with a booking (POST /bookings)
class BookingDetailIn(BaseModel):
    id: Optional[int] = None
    room_id: int
    start_datetime: datetime
    end_datetime: datetime
    status: int = BookingDetailStatus.official
    guest_count: int = 0
    layout_type: Optional[int] = None
    scheduled_reply_date: Optional[datetime] = None
    cancel_type: Optional[int] = None
    cancellation_fee_days: Optional[int] = None

    @field_validator("status")
    @classmethod
    def bookable_status(cls, v):
        if BookingDetailStatus(v) == BookingDetailStatus.blocked:
            raise ValueError("blocked is not a bookable status")
        return v

    @field_validator("cancel_type")
    @classmethod
    def known_cancel_type(cls, v):
        if v is not None:
            CancelType(v)
        return v

    @model_validator(mode="after")
    def ends_after_start(self):
        if self.end_datetime <= self.start_datetime:
            raise ValueError("end_datetime must be after start_datetime")
        return self


class BookingDetailServiceIn(BaseModel):
    service_id: int
    usage_count: int = Field(1, ge=1)


# Booking: Create / Edit (POST /bookings)
class BookingSave(BaseModel):
    id: Optional[int] = None
    customer_id: int
    created_staff_id: int
    updated_staff_id: Optional[int] = None
    contact_name: Optional[str] = None
    contact_tel: Optional[str] = None
    note: Optional[str] = None
    details: List[BookingDetailIn] = Field(..., min_length=1)
    services: List[BookingDetailServiceIn] = []


class BookingDetailServiceOut(BaseModel):
    service_id: int
    usage_count: int
    price: Decimal

    class Config:
        from_attributes = True


class BookingDetail(BaseModel):
    id: int
    booking_id: int
    room_id: int
    start_datetime: datetime
    end_datetime: datetime
    status: int
    guest_count: int
    layout_type: Optional[int] = None
    basic_amount: Decimal
    extension_amount: Decimal
    all_day_amount: Decimal
    tax_rate: Decimal
    discount_amount: Decimal
    deposit_amount: Decimal
    total_service_without_tax_amount: Decimal
    cancel_type: Optional[int] = None
    cancellation_fee_days: Optional[int] = None
    cancel_datetime: Optional[datetime] = None
    cancel_price: Optional[Decimal] = None
    services: List[BookingDetailServiceOut] = []

    class Config:
        from_attributes = True


class Booking(BaseModel):
    id: int
    customer_id: int
    created_staff_id: int
    updated_staff_id: int
    contact_name: Optional[str] = None
    contact_tel: Optional[str] = None
    note: Optional[str] = None
    details: List[BookingDetail] = []

    class Config:
        from_attributes = True


# Booking detail: Edit (PATCH /booking-details/{id})
class BookingDetailUpdate(BaseModel):
    status: Optional[int] = None
    guest_count: Optional[int] = None
    layout_type: Optional[int] = None
    scheduled_reply_date: Optional[datetime] = None
    discount_amount: Optional[Decimal] = None
    deposit_amount: Optional[Decimal] = None
    total_service_without_tax_amount: Optional[Decimal] = None
    cancel_type: Optional[int] = None
    cancellation_fee_days: Optional[int] = None
    cancel_datetime: Optional[datetime] = None
    cancel_staff_id: Optional[int] = None
    cancel_requester_name: Optional[str] = None
    cancel_requester_tel: Optional[str] = None

    @field_validator("status")
    @classmethod
    def known_status(cls, v):
        if v is not None:
            BookingDetailStatus(v)
        return v


# Booking detail: Cancel (POST /booking-details/{id}/cancel)
class BookingDetailCancel(BaseModel):
    cancel_type: int
    cancellation_fee_days: Optional[int] = None
    cancel_staff_id: int
    cancel_requester_name: str
    cancel_requester_tel: Optional[str] = None

    @field_validator("cancel_type")
    @classmethod
    def known_cancel_type(cls, v):
        CancelType(v)
        return v


class BookingDetailCancelResponse(BaseModel):
    id: int
    status: int
    cancel_datetime: datetime
    cancel_price: Decimal


# Booking detail: Validate (POST /booking-details/validate)
class BookingDetailValidate(BaseModel):
    id: Optional[int] = None
    room_id: int
    start_datetime: datetime
    end_datetime: datetime
    status: Optional[int] = None

from venue_office.models.room import Room, RoomCharge
from venue_office.models.people import Customer, Staff
from venue_office.models.service import Service, ServiceType, SubtotalType, LocationType
from venue_office.models.booking import (
    Booking, BookingDetail, BookingDetailService, BookingDetailStatus, CancelType, LayoutType,
)
from venue_office.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from venue_office.models.holiday import Holiday

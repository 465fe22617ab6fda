from venue_office.db.session import Base
from venue_office.models.room import Room, RoomCharge
from venue_office.models.people import Customer, Staff
from venue_office.models.service import Service
from venue_office.models.booking import Booking, BookingDetail, BookingDetailService
from venue_office.models.invoice import Invoice, InvoiceItem
from venue_office.models.holiday import Holiday

from venue_office.schemas.common import PaginatedResponse, ErrorResponse, Availability
from venue_office.schemas.people import (
    Customer, CustomerCreate, CustomerUpdate,
    Staff, StaffCreate, StaffUpdate, Token,
)
from venue_office.schemas.room import Room, RoomCreate, RoomUpdate, RoomCharge, RoomChargeCreate
from venue_office.schemas.service import Service, ServiceCreate, ServiceUpdate
from venue_office.schemas.holiday import Holiday, HolidayCreate, HolidayCheck
from venue_office.schemas.booking import (
    Booking, BookingSave, BookingDetail, BookingDetailIn, BookingDetailServiceIn,
    BookingDetailUpdate, BookingDetailCancel, BookingDetailCancelResponse, BookingDetailValidate,
)
from venue_office.schemas.invoice import (
    Invoice, InvoiceCreate, InvoiceUpdate, InvoiceItem, InvoiceItemIn,
    BookingDetailItems, ReconcileResult, LobbyInvoiceCreate, AmountsRequest, AmountsResponse,
)
from venue_office.schemas.revenue import JournalRow, JournalResponse, RoomSales, PeriodRow

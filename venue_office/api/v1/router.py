from fastapi import APIRouter

# Auth
from venue_office.api.v1.public.auth import router as auth_router

# Master data
from venue_office.api.v1.admin.rooms import router as rooms_router, charge_router
from venue_office.api.v1.admin.services import router as services_router
from venue_office.api.v1.admin.people import customer_router, staff_router
from venue_office.api.v1.admin.holidays import router as holidays_router

# Bookings and billing
from venue_office.api.v1.admin.bookings import (
    router as bookings_router,
    detail_router,
    item_router,
)
from venue_office.api.v1.admin.invoices import router as invoices_router, lobby_router

# Reports
from venue_office.api.v1.admin.reports import router as reports_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Master data ---
api_router.include_router(rooms_router)
api_router.include_router(charge_router)
api_router.include_router(services_router)
api_router.include_router(customer_router)
api_router.include_router(staff_router)
api_router.include_router(holidays_router)

# --- Bookings and billing ---
api_router.include_router(bookings_router)
api_router.include_router(detail_router)
api_router.include_router(item_router)
api_router.include_router(invoices_router)
api_router.include_router(lobby_router)

# --- Reports ---
api_router.include_router(reports_router)

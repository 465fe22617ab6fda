from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from venue_office.api.deps import get_current_staff, get_facility
from venue_office.core.config import FacilityConfig
from venue_office.db.base import Base
from venue_office.db.session import get_db
from venue_office.main import app
from venue_office.models import (
    Booking,
    BookingDetail,
    BookingDetailStatus,
    Customer,
    InvoiceItem,
    LocationType,
    Room,
    RoomCharge,
    Service,
    ServiceType,
    Staff,
    SubtotalType,
)

ROOM_SET_ID = 10
ROOM_IN_SET_IDS = (11, 12)
PLAIN_ROOM_ID = 1


@pytest.fixture
def config():
    return FacilityConfig(
        room_set_id=ROOM_SET_ID,
        room_in_set_ids=ROOM_IN_SET_IDS,
        basic_fee_service_id=1,
        extension_fee_service_id=2,
        all_day_fee_service_id=3,
        incurred_fee_service_id=4,
        cancel_fee_service_id=5,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def staff(db):
    staff = Staff(id=1, username="frontdesk", name="Front Desk", hashed_password="x")
    db.add(staff)
    db.commit()
    return staff


@pytest.fixture
def customer(db):
    customer = Customer(id=1, name="Acme KK")
    db.add(customer)
    db.commit()
    return customer


@pytest.fixture
def services(db):
    rows = [
        Service(id=1, name="Basic fee", type=ServiceType.basic_fee, unit_price=0),
        Service(id=2, name="Extension fee", type=ServiceType.overtime_fee, unit_price=0),
        Service(id=3, name="All-day fee", type=ServiceType.basic_fee, unit_price=0),
        Service(id=4, name="Early entry", type=ServiceType.overtime_fee, unit_price=2000),
        Service(id=5, name="Cancellation fee", type=ServiceType.cancel_fee,
                subtotal_type=SubtotalType.non_taxable, unit_price=0),
        Service(id=6, name="Coffee", type=ServiceType.drinks, unit_price=500),
        Service(id=7, name="Projector", type=ServiceType.device, unit_price=3000, stock=2),
        Service(id=8, name="Sandwich", type=ServiceType.food,
                location_type=LocationType.lobby, unit_price=800),
    ]
    db.add_all(rows)
    db.commit()
    return {service.id: service for service in rows}


@pytest.fixture
def rooms(db):
    rows = [
        Room(id=PLAIN_ROOM_ID, name="Room A", area=Decimal("20")),
        Room(id=ROOM_SET_ID, name="Hall", area=Decimal("60")),
        Room(id=11, name="Hall East", area=Decimal("30")),
        Room(id=12, name="Hall West", area=Decimal("30")),
    ]
    db.add_all(rows)
    db.flush()
    for room in rows:
        db.add(RoomCharge(
            room_id=room.id,
            basic_price=3000,
            extension_price=1000,
            all_day_price=20000,
            subtotal_type=SubtotalType.consumption_tax,
            start_date=date(2020, 1, 1),
        ))
    db.commit()
    return {room.id: room for room in rows}


@pytest.fixture
def booking(db, customer, staff, rooms, services):
    booking = Booking(customer_id=customer.id, created_staff_id=staff.id, updated_staff_id=staff.id)
    db.add(booking)
    db.commit()
    return booking


@pytest.fixture
def make_detail(db, booking):
    def _make(room_id, start, end, status=BookingDetailStatus.official, **fields):
        values = dict(
            booking_id=booking.id,
            room_id=room_id,
            start_datetime=start,
            end_datetime=end,
            status=status,
            basic_amount=3000,
            extension_amount=1000,
            all_day_amount=20000,
            tax_rate=10,
        )
        values.update(fields)
        detail = BookingDetail(**values)
        db.add(detail)
        db.commit()
        return detail
    return _make


@pytest.fixture
def make_item(db):
    def _make(detail=None, invoice=None, service_id=6, amount=1000, type=ServiceType.drinks, **fields):
        values = dict(
            booking_detail_id=detail.id if detail is not None else None,
            invoice_id=invoice.id if invoice is not None else None,
            service_id=service_id,
            name="Item",
            type=type,
            unit_amount=amount,
            tax_amount=0,
            count=1,
            subtotal_without_tax_amount=amount,
            subtotal_tax_amount=0,
            subtotal_amount=amount,
        )
        values.update(fields)
        item = InvoiceItem(**values)
        db.add(item)
        db.commit()
        return item
    return _make


@pytest.fixture
def client(db, config, staff):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_facility] = lambda: config
    app.dependency_overrides[get_current_staff] = lambda: staff
    yield TestClient(app)
    app.dependency_overrides.clear()
from datetime import date, datetime

import pytest

from venue_office.core.exceptions import (
    BOOKING_CREATE_BLOCKED,
    EQUIPMENT_UNAVAILABLE,
    HOLIDAY_BLOCKED,
    ROOM_CHARGE_MISSING,
    NotFound,
    SchedulingConflict,
    ValidationError,
)
from venue_office.models.booking import BookingDetailService, BookingDetailStatus, CancelType
from venue_office.models.holiday import Holiday
from venue_office.models.invoice import Invoice, InvoiceItem
from venue_office.models.room import Room
from venue_office.utils.bookings import available_stock, is_bookable, save_booking

TODAY = date(2030, 6, 1)
START = datetime(2030, 6, 3, 10)
END = datetime(2030, 6, 3, 13)


def booking_values(*details, **fields):
    values = {"customer_id": 1, "created_staff_id": 1, "details": list(details)}
    values.update(fields)
    return values


def detail_values(room_id=1, start=START, end=END, **fields):
    return {"room_id": room_id, "start_datetime": start, "end_datetime": end, **fields}


def items_of(db, detail):
    return db.query(InvoiceItem).filter(
        InvoiceItem.booking_detail_id == detail.id
    ).order_by(InvoiceItem.service_id).all()


@pytest.fixture
def ready(db, customer, staff, rooms, services):
    return True


def test_create_prices_the_detail_and_books_equipment(db, config, ready):
    booking = save_booking(
        db,
        booking_values(detail_values(), services=[{"service_id": 7, "usage_count": 2}]),
        config,
        today=TODAY,
    )
    db.commit()

    assert len(booking.details) == 1
    detail = booking.details[0]
    assert detail.basic_amount == 3000
    assert detail.tax_rate == 10
    assert detail.status == BookingDetailStatus.official

    items = items_of(db, detail)
    assert [item.service_id for item in items] == [1, 2]
    assert [item.subtotal_amount for item in items] == [6600, 1100]
    assert all(item.invoice_id is None for item in items)

    assert [(s.service_id, s.usage_count, s.price) for s in detail.services] == [(7, 2, 6000)]


def test_create_rejects_an_occupied_room(db, config, ready, make_detail):
    make_detail(10, START, END)

    with pytest.raises(SchedulingConflict) as excinfo:
        save_booking(db, booking_values(detail_values(room_id=11)), config, today=TODAY)
    assert excinfo.value.message == BOOKING_CREATE_BLOCKED


def test_details_of_one_submission_cannot_collide(db, config, ready):
    with pytest.raises(SchedulingConflict):
        save_booking(
            db,
            booking_values(detail_values(room_id=10), detail_values(room_id=12)),
            config,
            today=TODAY,
        )


def test_temporary_sibling_on_another_room_is_fine(db, config, ready):
    booking = save_booking(
        db,
        booking_values(
            detail_values(room_id=11),
            detail_values(room_id=12, status=BookingDetailStatus.temporary),
        ),
        config,
        today=TODAY,
    )
    db.commit()
    assert [detail.room_id for detail in booking.details] == [11, 12]


def test_holiday_blocks_the_booking(db, config, ready):
    db.add(Holiday(date=START.date(), name="Foundation day"))
    db.commit()

    with pytest.raises(SchedulingConflict) as excinfo:
        save_booking(db, booking_values(detail_values()), config, today=TODAY)
    assert excinfo.value.message == HOLIDAY_BLOCKED
    assert not is_bookable(db, 1, START, END, config)


def test_room_without_tariff(db, config, ready):
    db.add(Room(id=5, name="Annex"))
    db.commit()

    with pytest.raises(ValidationError) as excinfo:
        save_booking(db, booking_values(detail_values(room_id=5)), config, today=TODAY)
    assert excinfo.value.message == ROOM_CHARGE_MISSING


def test_unknown_customer(db, config, ready):
    with pytest.raises(NotFound):
        save_booking(db, booking_values(detail_values(), customer_id=99), config, today=TODAY)


def test_equipment_stock_counts_the_setup_buffer(db, config, ready, make_detail, services):
    other = make_detail(11, datetime(2030, 6, 3, 8), datetime(2030, 6, 3, 9, 45))
    db.add(BookingDetailService(booking_detail_id=other.id, service_id=7, usage_count=2, price=6000))
    db.commit()

    assert available_stock(db, services[7], START, END) == 0
    with pytest.raises(ValidationError) as excinfo:
        save_booking(
            db,
            booking_values(detail_values(), services=[{"service_id": 7}]),
            config,
            today=TODAY,
        )
    assert excinfo.value.message == EQUIPMENT_UNAVAILABLE


def test_edit_reprices_only_unbilled_room_items(db, config, ready, make_item):
    booking = save_booking(db, booking_values(detail_values()), config, today=TODAY)
    db.commit()
    main = booking.details[0]
    coffee = make_item(main)

    save_booking(
        db,
        booking_values(
            detail_values(end=datetime(2030, 6, 3, 14), id=main.id),
            id=booking.id,
            contact_name="Tanaka",
        ),
        config,
        today=TODAY,
    )
    db.commit()

    assert booking.contact_name == "Tanaka"
    assert main.end_datetime == datetime(2030, 6, 3, 14)
    items = items_of(db, main)
    assert [item.service_id for item in items] == [1, 2, 6]
    assert items[1].count == 2
    assert items[2].id == coffee.id


def test_edit_needs_the_main_detail_id(db, config, ready):
    booking = save_booking(db, booking_values(detail_values()), config, today=TODAY)
    db.commit()

    with pytest.raises(ValidationError):
        save_booking(db, booking_values(detail_values(), id=booking.id), config, today=TODAY)


def test_edit_does_not_collide_with_itself(db, config, ready):
    booking = save_booking(db, booking_values(detail_values()), config, today=TODAY)
    db.commit()
    main = booking.details[0]

    save_booking(
        db,
        booking_values(detail_values(id=main.id), id=booking.id),
        config,
        today=TODAY,
    )
    db.commit()
    assert is_bookable(db, 1, START, END, config, booking_detail_id=main.id)


def test_edit_leaves_billed_room_fees_alone(db, config, ready):
    booking = save_booking(db, booking_values(detail_values()), config, today=TODAY)
    db.commit()
    main = booking.details[0]
    invoice = Invoice(booking_id=booking.id, total_amount=7700)
    db.add(invoice)
    db.commit()
    for item in items_of(db, main):
        item.invoice_id = invoice.id
    db.commit()

    save_booking(
        db,
        booking_values(detail_values(id=main.id), id=booking.id, note="Projector at the back"),
        config,
        today=TODAY,
    )
    db.commit()

    items = items_of(db, main)
    assert [(item.service_id, item.invoice_id) for item in items] == [(1, invoice.id), (2, invoice.id)]


def test_edit_cannot_skip_the_status_rules(db, config, ready):
    booking = save_booking(db, booking_values(detail_values()), config, today=TODAY)
    db.commit()
    main = booking.details[0]
    main.status = BookingDetailStatus.complete_payment
    db.commit()

    with pytest.raises(ValidationError):
        save_booking(
            db,
            booking_values(
                detail_values(id=main.id, status=BookingDetailStatus.canceled),
                id=booking.id,
            ),
            config,
            today=TODAY,
        )
    db.rollback()

    db.refresh(main)
    assert main.status == BookingDetailStatus.complete_payment
    assert main.cancel_price is None
    assert main.cancel_datetime is None


def test_cancel_through_edit_charges_the_fee(db, config, ready):
    booking = save_booking(db, booking_values(detail_values()), config, today=TODAY)
    db.commit()
    main = booking.details[0]

    save_booking(
        db,
        booking_values(
            detail_values(
                id=main.id,
                status=BookingDetailStatus.canceled,
                cancel_type=CancelType.normal,
            ),
            id=booking.id,
        ),
        config,
        today=date(2030, 5, 10),
    )
    db.commit()

    assert main.status == BookingDetailStatus.canceled
    assert main.cancel_price == 3850
    assert main.cancel_datetime == datetime(2030, 5, 10)
    assert [item.service_id for item in items_of(db, main)] == [config.cancel_fee_service_id]

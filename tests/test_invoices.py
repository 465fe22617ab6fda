from datetime import date, datetime

import pytest

from venue_office.core.exceptions import NotFound, ValidationError
from venue_office.models.booking import BookingDetailStatus
from venue_office.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from venue_office.models.service import Service, ServiceType, SubtotalType
from venue_office.utils.amounts import calculate_amounts, calculate_tax_amount
from venue_office.utils.invoices import bill_booking_items, create_lobby_invoice, delete_invoice

TODAY = date(2030, 6, 3)
START = datetime(2030, 6, 3, 10)
END = datetime(2030, 6, 3, 13)


# ---------------------------------------------------------------------------
# Billing booking items
# ---------------------------------------------------------------------------


def test_billing_every_draft_completes_the_detail(db, booking, make_detail, make_item):
    detail = make_detail(1, START, END)
    items = [make_item(detail), make_item(detail, amount=500)]

    invoice = bill_booking_items(
        db, booking.id, [item.id for item in items],
        {"total_amount": 1500, "created_staff_id": 1}, today=TODAY,
    )
    db.commit()

    assert invoice.booking_id == booking.id
    assert invoice.status == InvoiceStatus.completed
    assert invoice.payment_date == TODAY
    assert len(invoice.items) == 2
    assert detail.status == BookingDetailStatus.complete_payment


def test_partial_billing_leaves_the_detail_open(db, booking, make_detail, make_item):
    detail = make_detail(1, START, END)
    billed = make_item(detail)
    make_item(detail)

    bill_booking_items(db, booking.id, [billed.id], {"total_amount": 1000}, today=TODAY)
    db.commit()

    assert detail.status == BookingDetailStatus.official


def test_items_outside_the_booking_are_rejected(db, booking, make_detail, make_item):
    detail = make_detail(1, START, END)
    make_item(detail)
    lobby_item = make_item(service_id=8, type=ServiceType.food)

    with pytest.raises(ValidationError):
        bill_booking_items(db, booking.id, [lobby_item.id], {}, today=TODAY)


def test_unknown_booking(db, services):
    with pytest.raises(NotFound):
        bill_booking_items(db, 999, [1], {})


def test_existing_invoice_takes_the_new_item_set(db, booking, make_detail, make_item):
    detail = make_detail(1, START, END)
    first = make_item(detail)
    second = make_item(detail)
    invoice = bill_booking_items(db, booking.id, [first.id], {"total_amount": 1000}, today=TODAY)
    db.commit()

    bill_booking_items(
        db, booking.id, [second.id], {"total_amount": 1000}, invoice_id=invoice.id, today=TODAY
    )
    db.commit()

    assert db.get(InvoiceItem, first.id).invoice_id is None
    assert db.get(InvoiceItem, second.id).invoice_id == invoice.id


# ---------------------------------------------------------------------------
# Deleting
# ---------------------------------------------------------------------------


def test_delete_returns_items_to_drafts(db, booking, make_detail, make_item):
    detail = make_detail(1, START, END)
    item = make_item(detail)
    invoice = bill_booking_items(db, booking.id, [item.id], {}, today=TODAY)
    db.commit()

    delete_invoice(db, invoice)
    db.commit()

    assert db.query(Invoice).count() == 0
    assert db.get(InvoiceItem, item.id).invoice_id is None
    assert detail.status == BookingDetailStatus.official


def test_delete_keeps_canceled_details_canceled(db, booking, make_detail, make_item):
    detail = make_detail(1, START, END, cancel_datetime=datetime(2030, 5, 1))
    item = make_item(detail)
    invoice = bill_booking_items(db, booking.id, [item.id], {}, today=TODAY)
    db.commit()

    delete_invoice(db, invoice)
    db.commit()

    assert detail.status == BookingDetailStatus.canceled


def test_revised_invoice_cannot_be_deleted(db, booking):
    original = Invoice(booking_id=booking.id, status=InvoiceStatus.canceled)
    db.add(original)
    db.flush()
    db.add(Invoice(booking_id=booking.id, past_invoice_id=original.id, is_past_revision=True))
    db.commit()

    with pytest.raises(ValidationError):
        delete_invoice(db, original)


# ---------------------------------------------------------------------------
# Lobby sales
# ---------------------------------------------------------------------------


def lobby_item(service_id=8):
    return {
        "service_id": service_id,
        "name": "Sandwich",
        "type": ServiceType.food,
        "unit_amount": 800,
        "tax_amount": 80,
        "count": 1,
        "subtotal_without_tax_amount": 800,
        "subtotal_tax_amount": 80,
        "subtotal_amount": 880,
    }


def test_lobby_invoice_is_paid_in_cash(db, staff, services):
    invoice = create_lobby_invoice(
        db,
        {"created_staff_id": staff.id, "total_amount": 880, "card_payment_amount": 880},
        [lobby_item()],
        today=TODAY,
    )
    db.commit()

    assert invoice.booking_id is None
    assert invoice.payment_date == TODAY
    assert invoice.cash_payment_amount == 880
    assert invoice.card_payment_amount == 0
    assert [item.booking_detail_id for item in invoice.items] == [None]


def test_lobby_invoice_rejects_room_services(db, staff, services):
    with pytest.raises(ValidationError):
        create_lobby_invoice(db, {"created_staff_id": staff.id}, [lobby_item(service_id=6)])


def test_lobby_invoice_needs_a_known_staff(db, services):
    with pytest.raises(NotFound):
        create_lobby_invoice(db, {"created_staff_id": 42}, [lobby_item()])


def test_deleting_a_lobby_invoice_deletes_its_items(db, staff, services):
    invoice = create_lobby_invoice(db, {"created_staff_id": staff.id}, [lobby_item()], today=TODAY)
    db.commit()

    delete_invoice(db, invoice)
    db.commit()

    assert db.query(InvoiceItem).count() == 0


# ---------------------------------------------------------------------------
# Amount preview
# ---------------------------------------------------------------------------


def test_tax_amount_is_floored():
    assert calculate_tax_amount(1999, 10) == 199
    assert calculate_tax_amount(0, 10) == 0


def test_amounts_split_service_fee_tax_base_and_discount(db, make_detail, make_item):
    db.add(Service(id=9, name="Buffet", type=ServiceType.food, subtotal_type=SubtotalType.service_fee))
    db.commit()
    detail = make_detail(1, START, END, discount_amount=500)
    items = [
        make_item(detail, service_id=9, type=ServiceType.food, amount=10000),
        make_item(detail, amount=1000),
        make_item(detail, service_id=5, type=ServiceType.cancel_fee, amount=3000),
    ]

    amounts = calculate_amounts(db, [item.id for item in items], 10)

    assert amounts["service_fee"] == 1000
    assert amounts["discount_without_tax_amount"] == -500
    assert amounts["subtotal_without_tax_amount"] == 14500
    assert amounts["taxable_amount"] == 11500
    assert amounts["tax_amount"] == 1150
    assert amounts["subtotal"] == 15650


def test_amounts_of_nothing(db):
    amounts = calculate_amounts(db, [], 10)
    assert amounts["subtotal"] == 0

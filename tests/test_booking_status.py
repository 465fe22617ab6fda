from datetime import datetime

import pytest

from venue_office.core.exceptions import BOOKING_UPDATE_BLOCKED, SchedulingConflict, ValidationError
from venue_office.models.booking import BookingDetailStatus as Status, CancelType
from venue_office.utils.booking_status import can_transition, update_booking_detail

START = datetime(2030, 6, 30, 10)
END = datetime(2030, 6, 30, 13)


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        (Status.official, Status.temporary, True),
        (Status.temporary, Status.complete_payment, True),
        (Status.waiting_cancel, Status.official, True),
        (Status.canceled, Status.withhold_payment, True),
        (Status.canceled, Status.official, False),
        (Status.complete_payment, Status.withhold_payment, True),
        (Status.complete_payment, Status.canceled, False),
        (Status.withhold_payment, Status.check_in, False),
        (Status.official, Status.blocked, False),
    ],
)
def test_transition_table(current, target, allowed):
    assert can_transition(current, target) is allowed


def test_disallowed_transition_is_rejected(db, config, make_detail):
    detail = make_detail(1, START, END, status=Status.complete_payment)
    with pytest.raises(ValidationError):
        update_booking_detail(db, detail, {"status": Status.official}, config)


def test_plain_field_edit_keeps_status(db, config, make_detail):
    detail = make_detail(1, START, END)
    update_booking_detail(db, detail, {"guest_count": 12}, config)
    assert detail.guest_count == 12
    assert detail.status == Status.official


def test_leaving_waiting_cancel_rechecks_the_room(db, config, make_detail):
    make_detail(1, START, END)
    waiting = make_detail(1, START, END, status=Status.waiting_cancel)

    with pytest.raises(SchedulingConflict) as excinfo:
        update_booking_detail(db, waiting, {"status": Status.official}, config)
    assert excinfo.value.message == BOOKING_UPDATE_BLOCKED


def test_leaving_waiting_cancel_on_a_free_room(db, config, make_detail):
    waiting = make_detail(1, START, END, status=Status.waiting_cancel)
    update_booking_detail(db, waiting, {"status": Status.temporary}, config)
    assert waiting.status == Status.temporary


def test_moving_into_canceled_charges_the_fee(db, config, make_detail):
    detail = make_detail(1, START, END, cancel_type=CancelType.normal)

    update_booking_detail(
        db,
        detail,
        {
            "status": Status.canceled,
            "cancel_datetime": datetime(2030, 6, 10, 15),
            "cancel_staff_id": 1,
            "guest_count": 5,
        },
        config,
    )
    db.commit()

    assert detail.status == Status.canceled
    assert detail.cancel_price == 3850
    assert detail.cancel_datetime == datetime(2030, 6, 10)
    assert detail.cancel_staff_id == 1
    assert detail.guest_count == 5

from datetime import date

import pytest

from venue_office.core.exceptions import InvariantViolation, NotFound, ValidationError
from venue_office.models.room import RoomCharge
from venue_office.utils.room_charges import delete_room_charge, find_room_charge, schedule_room_charge

TODAY = date(2030, 6, 1)


def charge_values(start_date, room_id=1, basic_price=3500):
    return {
        "room_id": room_id,
        "basic_price": basic_price,
        "extension_price": 1200,
        "all_day_price": 24000,
        "start_date": start_date,
    }


def test_current_charge_is_found(db, rooms):
    charge = find_room_charge(db, 1, TODAY)
    assert charge.basic_price == 3000
    assert charge.end_date is None


def test_scheduling_closes_the_open_record(db, rooms):
    schedule_room_charge(db, charge_values(date(2030, 7, 1)), today=TODAY)
    db.commit()

    assert find_room_charge(db, 1, date(2030, 6, 30)).end_date == date(2030, 6, 30)
    assert find_room_charge(db, 1, date(2030, 7, 1)).basic_price == 3500
    open_ended = db.query(RoomCharge).filter(
        RoomCharge.room_id == 1, RoomCharge.end_date.is_(None)
    ).count()
    assert open_ended == 1


def test_past_start_is_rejected(db, rooms):
    with pytest.raises(ValidationError):
        schedule_room_charge(db, charge_values(date(2030, 5, 31)), today=TODAY)


def test_charge_before_a_scheduled_one_is_rejected(db, rooms):
    schedule_room_charge(db, charge_values(date(2030, 7, 1)), today=TODAY)
    db.commit()

    with pytest.raises(ValidationError):
        schedule_room_charge(db, charge_values(date(2030, 6, 15)), today=TODAY)


def test_unknown_room(db, rooms):
    with pytest.raises(NotFound):
        schedule_room_charge(db, charge_values(date(2030, 7, 1), room_id=99), today=TODAY)


def test_two_open_records_are_reported(db, rooms):
    db.add(RoomCharge(**charge_values(date(2025, 1, 1))))
    db.commit()

    with pytest.raises(InvariantViolation):
        schedule_room_charge(db, charge_values(date(2030, 7, 1)), today=TODAY)


def test_deleting_a_scheduled_charge_reopens_the_previous_one(db, rooms):
    scheduled = schedule_room_charge(db, charge_values(date(2030, 7, 1)), today=TODAY)
    db.commit()

    delete_room_charge(db, scheduled, today=TODAY)
    db.commit()

    charge = find_room_charge(db, 1, date(2031, 1, 1))
    assert charge.basic_price == 3000
    assert charge.end_date is None


def test_started_charge_cannot_be_deleted(db, rooms):
    with pytest.raises(ValidationError):
        delete_room_charge(db, find_room_charge(db, 1, TODAY), today=TODAY)

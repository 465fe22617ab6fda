from datetime import datetime, timedelta

from venue_office.models.booking import BookingDetailStatus
from venue_office.utils.overlap import has_conflict, intervals_conflict, targeted_room_ids

START = datetime(2030, 6, 3, 10)
END = datetime(2030, 6, 3, 12)


def test_targeted_room_ids_resolve_the_room_set(config):
    assert targeted_room_ids(10, config) == [10, 11, 12]
    assert targeted_room_ids(11, config) == [11, 10]
    assert targeted_room_ids(1, config) == [1]


def test_touching_intervals_do_not_conflict():
    assert not intervals_conflict(START, END, END, END + timedelta(hours=2))
    assert intervals_conflict(START, END + timedelta(minutes=1), END, END + timedelta(hours=2))
    assert intervals_conflict(START, END, START, END)


def test_booking_ending_at_the_next_start_is_free(db, config, make_detail):
    make_detail(1, END, END + timedelta(hours=2))

    assert not has_conflict(db, 1, START, END, config)
    assert has_conflict(db, 1, START, END + timedelta(minutes=1), config)


def test_candidate_inside_existing_booking_conflicts(db, config, make_detail):
    make_detail(1, START - timedelta(hours=1), END + timedelta(hours=1))
    assert has_conflict(db, 1, START, END, config)


def test_room_set_blocks_every_sub_room(db, config, make_detail):
    make_detail(10, START, END)

    assert has_conflict(db, 11, START, END, config)
    assert has_conflict(db, 12, START, END, config)
    assert not has_conflict(db, 1, START, END, config)


def test_sub_room_blocks_room_set_but_not_its_sibling(db, config, make_detail):
    make_detail(11, START, END)

    assert has_conflict(db, 10, START, END, config)
    assert not has_conflict(db, 12, START, END, config)


def test_canceled_and_waiting_details_never_block(db, config, make_detail):
    make_detail(1, START, END, status=BookingDetailStatus.waiting_cancel)
    make_detail(1, START, END, status=BookingDetailStatus.canceled)
    make_detail(1, START, END, cancel_datetime=datetime(2030, 6, 1))

    assert not has_conflict(db, 1, START, END, config)


def test_edited_detail_is_excluded(db, config, make_detail):
    detail = make_detail(1, START, END)

    assert has_conflict(db, 1, START, END, config)
    assert not has_conflict(db, 1, START, END, config, exclude_id=detail.id)


def test_waiting_cancel_candidate_is_always_allowed(db, config, make_detail):
    make_detail(1, START, END)
    assert not has_conflict(
        db, 1, START, END, config, status=BookingDetailStatus.waiting_cancel
    )

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from venue_office.models.service import Service, ServiceType
from venue_office.utils.tariff import (
    build_room_invoice_items,
    calculate_room_price,
    is_all_day_booking,
    price_with_tax,
)

DAY = datetime(2030, 6, 3)


def price(config, start, end, incurred=0):
    return calculate_room_price(start, end, 3000, 1000, 20000, 10, incurred, config)


def total(room_price):
    return sum(line.subtotal for line in room_price.lines())


def test_price_with_tax_floors_tax_per_unit_then_subtotal():
    line = price_with_tax(Decimal("1005"), Decimal("1.5"), 10, service_id=2)
    assert line.tax == 100
    assert line.subtotal_without_tax == Decimal("1507.5")
    assert line.subtotal == 1657


def test_three_hour_booking_bills_two_basic_hours_and_one_extension(config):
    result = price(config, DAY.replace(hour=10), DAY.replace(hour=13))

    assert result.basic.count == 2
    assert result.basic.tax == 300
    assert result.basic.subtotal == 6600
    assert result.extension.count == 1
    assert result.extension.subtotal == 1100
    assert result.all_day.subtotal == 0
    assert result.incurred.subtotal == 0


def test_short_booking_uses_only_basic_hours(config):
    result = price(config, DAY.replace(hour=10), DAY.replace(hour=11, minute=30))
    assert result.basic.count == Decimal("1.5")
    assert result.extension.count == 0


def test_ten_hours_inside_business_hours_is_all_day(config):
    assert is_all_day_booking(DAY.replace(hour=9), DAY.replace(hour=19), config)
    assert not is_all_day_booking(DAY.replace(hour=9), DAY.replace(hour=18, minute=59), config)


def test_all_day_patterns_around_business_hours(config):
    # starts before opening, ten hours past opening
    assert is_all_day_booking(DAY.replace(hour=7), DAY.replace(hour=19), config)
    # ends after closing, ten hours before closing
    assert is_all_day_booking(DAY.replace(hour=11), DAY.replace(hour=22), config)
    assert not is_all_day_booking(DAY.replace(hour=12), DAY.replace(hour=22), config)


def test_all_day_bills_overtime_outside_business_hours(config):
    result = price(config, DAY.replace(hour=8), DAY.replace(hour=22), incurred=2000)

    assert result.basic.count == 0
    assert result.all_day.count == 1
    assert result.all_day.subtotal == 22000
    assert result.extension.count == 2
    assert result.extension.subtotal == 2200
    assert result.incurred.count == 1
    assert result.incurred.subtotal == 2200


def test_incurred_fee_applies_to_early_start_without_all_day(config):
    result = price(config, DAY.replace(hour=8, minute=30), DAY.replace(hour=10), incurred=2000)
    assert result.all_day.count == 0
    assert result.incurred.count == 1


@pytest.mark.parametrize("start_hour", [9, 10, 12])
def test_subtotal_never_decreases_with_longer_usage(config, start_hour):
    start = DAY.replace(hour=start_hour)
    previous = Decimal(0)
    for half_hours in range(1, 25):
        subtotal = total(price(config, start, start + timedelta(minutes=30 * half_hours)))
        assert subtotal >= previous
        assert subtotal >= 0
        assert subtotal == int(subtotal)
        previous = subtotal


def test_invoice_items_skip_zero_lines(config):
    services = {
        1: Service(id=1, name="Basic fee", type=ServiceType.basic_fee),
        2: Service(id=2, name="Extension fee", type=ServiceType.overtime_fee),
        3: Service(id=3, name="All-day fee", type=ServiceType.basic_fee),
        4: Service(id=4, name="Early entry", type=ServiceType.overtime_fee),
    }
    result = price(config, DAY.replace(hour=10), DAY.replace(hour=13))

    items = build_room_invoice_items(result, services, booking_detail_id=7)

    assert [item.service_id for item in items] == [1, 2]
    basic = items[0]
    assert basic.booking_detail_id == 7
    assert basic.subtotal_tax_amount == 600
    assert basic.subtotal_without_tax_amount == 6000
    assert basic.subtotal_amount == 6600

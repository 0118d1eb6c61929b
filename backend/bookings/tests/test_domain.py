"""Tests for booking date validation and availability helpers."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from bookings.domain import (
    booked_ranges,
    ensure_no_conflict,
    find_conflicting_booking,
    ranges_overlap,
    validate_booking_dates,
)
from bookings.tests.fixtures import future
from core.errors import ConflictError, ValidationError

pytestmark = pytest.mark.django_db


def test_validate_booking_dates_rejects_inverted_and_empty_ranges():
    day = future(3)
    with pytest.raises(ValidationError) as exc_info:
        validate_booking_dates(day, day)
    assert exc_info.value.field == "dateRange"

    with pytest.raises(ValidationError):
        validate_booking_dates(day, day - timedelta(days=1))

    with pytest.raises(ValidationError):
        validate_booking_dates(None, day)


def test_ranges_overlap_is_half_open():
    a = date(2025, 1, 10)
    b = date(2025, 1, 13)
    assert ranges_overlap(a, b, date(2025, 1, 12), date(2025, 1, 15))
    assert not ranges_overlap(a, b, b, date(2025, 1, 15))
    assert not ranges_overlap(a, b, date(2025, 1, 7), a)


def test_cannot_overlap_paid_booking(stay, booking_factory):
    start = future(5)
    end = start + timedelta(days=3)
    existing = booking_factory(check_in=start, check_out=end, payment_status=True)

    with pytest.raises(ConflictError) as exc_info:
        ensure_no_conflict(stay, start + timedelta(days=1), end + timedelta(days=2))
    assert exc_info.value.context["conflicting_booking_id"] == existing.id


def test_touching_ranges_do_not_conflict(stay, booking_factory):
    start = future(7)
    end = start + timedelta(days=4)
    booking_factory(check_in=start, check_out=end, payment_status=True)

    # Checking out on the day another stay checks in is allowed both ways.
    ensure_no_conflict(stay, start - timedelta(days=4), start)
    ensure_no_conflict(stay, end, end + timedelta(days=3))


def test_pending_bookings_never_block(stay, booking_factory):
    start = future(2)
    end = start + timedelta(days=2)
    booking_factory(check_in=start, check_out=end, payment_status=False)

    assert find_conflicting_booking(stay, start, end) is None


def test_conflicts_are_scoped_to_property(stay, property_factory, booking_factory):
    start = future(4)
    end = start + timedelta(days=2)
    booking_factory(check_in=start, check_out=end, payment_status=True)
    other_property = property_factory(name="City Loft")

    assert find_conflicting_booking(other_property.id, start, end) is None


def test_exclude_booking_id_ignores_self(stay, booking_factory):
    start = future(9)
    end = start + timedelta(days=2)
    booking = booking_factory(check_in=start, check_out=end, payment_status=True)

    ensure_no_conflict(stay, start, end, exclude_booking_id=booking.id)


def test_booked_ranges_lists_only_paid_in_order(stay, booking_factory):
    later = booking_factory(check_in=future(20), check_out=future(22), payment_status=True)
    earlier = booking_factory(check_in=future(10), check_out=future(12), payment_status=True)
    booking_factory(check_in=future(30), check_out=future(31), payment_status=False)

    assert booked_ranges(stay) == [
        {
            "check_in": earlier.check_in.isoformat(),
            "check_out": earlier.check_out.isoformat(),
        },
        {
            "check_in": later.check_in.isoformat(),
            "check_out": later.check_out.isoformat(),
        },
    ]

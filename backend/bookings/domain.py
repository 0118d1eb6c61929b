"""Domain helpers for booking validation and availability."""

from __future__ import annotations

from datetime import date
from typing import Optional

from core.errors import ConflictError, ValidationError
from properties.models import Property

from .models import Booking


def validate_booking_dates(check_in: date | None, check_out: date | None) -> None:
    """Validate that the provided dates exist and form a valid range."""
    if not check_in or not check_out:
        raise ValidationError("Check-in and check-out dates are required.", field="dateRange")
    if check_out <= check_in:
        raise ValidationError(
            "Check-out date must be after check-in date.",
            field="dateRange",
        )


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open overlap test: [a_start, a_end) and [b_start, b_end)."""
    return a_start < b_end and b_start < a_end


def find_conflicting_booking(
    property_or_id: Property | int,
    check_in: date,
    check_out: date,
    *,
    exclude_booking_id: Optional[int] = None,
) -> Booking | None:
    """
    Return the first paid booking on the property that overlaps
    [check_in, check_out), or None.

    A stay checking out on day N does not block a stay checking in on day N.
    Pending bookings never block.
    """
    property_id = getattr(property_or_id, "pk", property_or_id)
    qs = Booking.objects.paid().filter(property_id=property_id)
    if exclude_booking_id is not None:
        qs = qs.exclude(pk=exclude_booking_id)
    return qs.overlapping(check_in, check_out).order_by("check_in").first()


def ensure_no_conflict(
    property_or_id: Property | int,
    check_in: date,
    check_out: date,
    *,
    exclude_booking_id: Optional[int] = None,
) -> None:
    """Ensure there are no overlapping paid bookings for the property."""
    conflict = find_conflicting_booking(
        property_or_id,
        check_in,
        check_out,
        exclude_booking_id=exclude_booking_id,
    )
    if conflict is not None:
        raise ConflictError(
            "These dates are already booked.",
            context={"conflicting_booking_id": conflict.pk},
        )


def booked_ranges(property_or_id: Property | int) -> list[dict[str, str]]:
    """Return paid [check_in, check_out) ranges for the availability calendar."""
    property_id = getattr(property_or_id, "pk", property_or_id)
    ranges = (
        Booking.objects.paid()
        .filter(property_id=property_id)
        .order_by("check_in", "check_out")
        .values("check_in", "check_out")
    )
    return [
        {
            "check_in": item["check_in"].isoformat(),
            "check_out": item["check_out"].isoformat(),
        }
        for item in ranges
    ]

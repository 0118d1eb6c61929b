from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db.models import Count, Q, QuerySet, Sum
from django.db.models.functions import Coalesce

from .models import Property

_CENT = Decimal("0.01")


def q2(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    """Convert Decimal currency units to integer minor units, rounding to the nearest cent."""
    cents = (amount * Decimal("100")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


@dataclass(frozen=True)
class BookingTotals:
    total_nights: int
    price: Decimal
    sub_total: Decimal
    cleaning: Decimal
    service: Decimal
    tax: Decimal
    order_total: Decimal

    @property
    def order_total_cents(self) -> int:
        return to_cents(self.order_total)

    def as_dict(self) -> dict[str, str]:
        """Stable, JSON-friendly snapshot for Booking.totals."""
        return {
            "total_nights": str(self.total_nights),
            "price": str(self.price),
            "sub_total": str(self.sub_total),
            "cleaning": str(self.cleaning),
            "service": str(self.service),
            "tax": str(self.tax),
            "order_total": str(self.order_total),
        }


def compute_booking_totals(
    *,
    check_in: date,
    check_out: date,
    price: Decimal,
) -> BookingTotals:
    """
    Compute the fee breakdown for a stay:
    - Sub total: nights * nightly price
    - Cleaning: settings.BOOKING_CLEANING_FEE (flat)
    - Service: settings.BOOKING_SERVICE_FEE (flat)
    - Tax: settings.BOOKING_TAX_RATE * (sub total + cleaning + service)
    - Order total: sum of the above

    Callers must pass check_out > check_in and price > 0; nothing is
    guarded here, so bad input yields nonsensical (e.g. negative) totals.
    """
    nights = (check_out - check_in).days
    price = Decimal(str(price))

    sub_total = q2(price * nights)
    cleaning = q2(Decimal(settings.BOOKING_CLEANING_FEE))
    service = q2(Decimal(settings.BOOKING_SERVICE_FEE))
    tax = q2((sub_total + cleaning + service) * Decimal(settings.BOOKING_TAX_RATE))
    order_total = q2(sub_total + cleaning + service + tax)

    return BookingTotals(
        total_nights=nights,
        price=q2(price),
        sub_total=sub_total,
        cleaning=cleaning,
        service=service,
        tax=tax,
        order_total=order_total,
    )


def rentals_with_stats(owner_id: int) -> QuerySet[Property]:
    """
    Return the owner's properties annotated with paid-booking aggregates
    (nights and revenue in cents) in one query.
    """
    paid = Q(bookings__payment_status=True)
    return (
        Property.objects.filter(owner_id=owner_id)
        .annotate(
            total_nights_sum=Coalesce(Sum("bookings__total_nights", filter=paid), 0),
            order_total_cents_sum=Coalesce(Sum("bookings__order_total_cents", filter=paid), 0),
            paid_bookings_count=Count("bookings", filter=paid),
        )
        .order_by("-created_at")
    )

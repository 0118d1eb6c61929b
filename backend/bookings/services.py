"""Booking lifecycle: purge abandoned attempts, validate, lock, price, persist."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from django.db import transaction
from django.utils import timezone

from core.errors import NotFoundError, ValidationError
from properties.models import Property
from properties.services import compute_booking_totals

from .domain import ensure_no_conflict, validate_booking_dates
from .models import Booking

logger = logging.getLogger(__name__)


def purge_pending_bookings(profile) -> int:
    """
    Delete every unpaid booking owned by the profile.

    Runs at the start of each booking attempt, before any validation, so an
    abandoned checkout never lingers once its owner tries again.
    """
    deleted, _ = Booking.objects.pending().filter(profile=profile).delete()
    if deleted:
        logger.info(
            "bookings: purged %s pending booking(s) for profile %s",
            deleted,
            profile.pk,
        )
    return deleted


def _coerce_pk(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def create_booking(profile, property_id, check_in: date, check_out: date) -> Booking:
    """
    Create a pending booking for ``profile``.

    Raises ValidationError for an inverted/empty range, NotFoundError for an
    unknown property and ConflictError when a paid booking overlaps. Nothing
    is persisted on failure (the pending-booking purge is not rolled back).
    """
    purge_pending_bookings(profile)

    validate_booking_dates(check_in, check_out)

    pk = _coerce_pk(property_id)
    if pk is None:
        raise NotFoundError("Property", context={"property_id": property_id})

    with transaction.atomic():
        # Row lock serializes concurrent attempts on the same property so the
        # conflict check and the insert behave as one unit.
        prop = Property.objects.select_for_update().filter(pk=pk).first()
        if prop is None:
            raise NotFoundError("Property", context={"property_id": pk})

        ensure_no_conflict(prop, check_in, check_out)

        totals = compute_booking_totals(
            check_in=check_in,
            check_out=check_out,
            price=prop.price,
        )
        booking = Booking.objects.create(
            profile=profile,
            property=prop,
            check_in=check_in,
            check_out=check_out,
            total_nights=totals.total_nights,
            order_total_cents=totals.order_total_cents,
            totals=totals.as_dict(),
        )

    logger.info(
        "bookings: created pending booking %s",
        booking.pk,
        extra={
            "booking_id": booking.pk,
            "property_id": prop.pk,
            "profile_id": profile.pk,
            "order_total_cents": booking.order_total_cents,
        },
    )
    return booking


def delete_booking(profile, booking_id) -> None:
    """Let a profile remove one of its own confirmed bookings."""
    pk = _coerce_pk(booking_id)
    booking = (
        Booking.objects.filter(pk=pk, profile=profile).first() if pk is not None else None
    )
    if booking is None:
        raise NotFoundError("Booking", context={"booking_id": booking_id})
    if not booking.payment_status:
        raise ValidationError("Only confirmed bookings can be deleted.", field="bookingId")
    booking.delete()
    logger.info("bookings: profile %s deleted booking %s", profile.pk, pk)


def purge_abandoned_pending_bookings(*, older_than: timedelta) -> int:
    """Delete unpaid bookings created before ``now - older_than``."""
    cutoff = timezone.now() - older_than
    deleted, _ = Booking.objects.pending().filter(created_at__lt=cutoff).delete()
    return deleted

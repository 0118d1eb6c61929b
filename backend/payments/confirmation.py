"""
Idempotent Pending -> Confirmed transition for bookings paid through Stripe Checkout.

Both the browser redirect and the ``checkout.session.completed`` webhook land
here, possibly more than once for the same session. The flag is flipped with a
conditional UPDATE so only the first delivery writes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from django.db import DatabaseError, transaction
from django.utils import timezone

from bookings.domain import find_conflicting_booking
from bookings.models import Booking
from bookings.signals import invalidate_for_booking_id
from core.errors import (
    AppError,
    ConflictError,
    NotFoundError,
    PaymentError,
    PersistenceAfterPaymentError,
    ValidationError,
)
from properties.models import Property

from .stripe_api import CHECKOUT_KIND, _field, _get_frontend_origin, retrieve_checkout_session

logger = logging.getLogger(__name__)

SESSION_COMPLETE = "complete"


@dataclass(frozen=True)
class ConfirmationResult:
    booking_id: int
    session_id: str
    already_confirmed: bool = False


def parse_session_metadata(metadata: Any) -> int:
    """
    Extract the booking id from Checkout session metadata.

    Raises PaymentError when the bag is missing, belongs to another kind of
    checkout, or carries a malformed id.
    """
    raw_id = _field(metadata, "booking_id")
    if not isinstance(raw_id, str) or not raw_id.strip():
        raise PaymentError("Payment session is missing its booking reference.")
    kind = _field(metadata, "kind")
    if kind is not None and kind != CHECKOUT_KIND:
        raise PaymentError(
            "Payment session does not belong to a booking.",
            context={"session_kind": kind},
        )
    raw_id = raw_id.strip()
    if not raw_id.isdigit() or int(raw_id) <= 0:
        raise PaymentError(
            "Payment session carries a malformed booking reference.",
            context={"raw_booking_id": raw_id[:64]},
        )
    return int(raw_id)


def _reconciliation_log(message: str, *args, exc: AppError) -> None:
    logger.critical(
        message,
        *args,
        extra={"reconciliation_required": True, **exc.log_extra()},
    )


def _invalidate_caches(booking_id: int) -> None:
    try:
        invalidate_for_booking_id(booking_id)
    except Exception:
        # The booking is already paid; stale caches expire on their own.
        logger.exception(
            "payments: cache invalidation failed for booking %s",
            booking_id,
            extra={"booking_id": booking_id},
        )


def mark_booking_paid(booking_id: int, *, session_id: str) -> ConfirmationResult:
    """
    Flip ``payment_status`` to True at most once for the given booking.

    Only called for complete sessions, so a missing booking or a paid overlap
    means money was taken without a confirmed stay and is logged for
    reconciliation.
    """
    try:
        with transaction.atomic():
            booking = Booking.objects.filter(pk=booking_id).first()
            if booking is None:
                raise NotFoundError(
                    "Booking",
                    context={"booking_id": booking_id, "session_id": session_id},
                )
            if booking.payment_status:
                return ConfirmationResult(
                    booking_id=booking.id,
                    session_id=session_id,
                    already_confirmed=True,
                )

            # Same lock as booking creation so a concurrent create cannot slip in.
            Property.objects.select_for_update().filter(pk=booking.property_id).first()
            conflict = find_conflicting_booking(
                booking.property_id,
                booking.check_in,
                booking.check_out,
                exclude_booking_id=booking.id,
            )
            if conflict is not None:
                raise ConflictError(
                    "These dates were booked by someone else before payment completed.",
                    context={
                        "booking_id": booking.id,
                        "conflicting_booking_id": conflict.id,
                        "session_id": session_id,
                    },
                )

            now = timezone.now()
            updated = Booking.objects.filter(pk=booking.id, payment_status=False).update(
                payment_status=True,
                paid_at=now,
                stripe_session_id=session_id,
                updated_at=now,
            )
            transaction.on_commit(lambda: _invalidate_caches(booking_id))
    except DatabaseError as exc:
        error = PersistenceAfterPaymentError(
            context={"booking_id": booking_id, "session_id": session_id},
        )
        logger.critical(
            "payments: session %s complete but booking %s could not be marked paid",
            session_id,
            booking_id,
            exc_info=True,
            extra={"reconciliation_required": True, **error.log_extra()},
        )
        raise error from exc
    except ConflictError as exc:
        _reconciliation_log(
            "payments: session %s paid for dates already taken",
            session_id,
            exc=exc,
        )
        raise
    except NotFoundError as exc:
        _reconciliation_log(
            "payments: session %s complete but booking %s no longer exists",
            session_id,
            booking_id,
            exc=exc,
        )
        raise

    if not updated:
        # Another delivery of the same confirmation won the compare-and-set.
        return ConfirmationResult(
            booking_id=booking_id,
            session_id=session_id,
            already_confirmed=True,
        )

    logger.info(
        "payments: booking %s confirmed",
        booking_id,
        extra={"booking_id": booking_id, "session_id": session_id},
    )
    return ConfirmationResult(booking_id=booking_id, session_id=session_id)


def confirm_payment(session_id: str | None) -> ConfirmationResult:
    """
    Resolve a Checkout session and confirm the booking it pays for.

    Raises ValidationError, ExternalServiceError subclasses, PaymentError,
    NotFoundError, ConflictError or PersistenceAfterPaymentError.
    """
    session_id = (session_id or "").strip()
    if not session_id:
        raise ValidationError("Missing payment session id.", field="session_id")

    session = retrieve_checkout_session(session_id)
    booking_id = parse_session_metadata(_field(session, "metadata"))

    status = _field(session, "status")
    if status != SESSION_COMPLETE:
        raise PaymentError(
            "Payment has not completed.",
            context={"booking_id": booking_id, "session_status": status},
        )

    return mark_booking_paid(booking_id, session_id=session_id)


def success_url() -> str:
    return f"{_get_frontend_origin()}/bookings"


def failure_url() -> str:
    return f"{_get_frontend_origin()}/bookings?error=payment_failed"


def confirm_payment_redirect(session_id: str | None) -> str:
    """Run the confirmation and reduce every outcome to a redirect target."""
    try:
        confirm_payment(session_id)
    except PersistenceAfterPaymentError:
        # Already logged at CRITICAL by mark_booking_paid.
        return failure_url()
    except (ConflictError, NotFoundError):
        # Logged for reconciliation by mark_booking_paid.
        return failure_url()
    except AppError as exc:
        if exc.status_code >= 500:
            logger.error(
                "payments: confirmation failed (%s)",
                exc.kind,
                extra={"session_id": session_id, **exc.log_extra()},
            )
        else:
            logger.warning(
                "payments: confirmation rejected (%s)",
                exc.kind,
                extra={"session_id": session_id, **exc.log_extra()},
            )
        return failure_url()
    except Exception:
        logger.exception(
            "payments: unexpected error during confirmation",
            extra={"session_id": session_id},
        )
        return failure_url()
    return success_url()

"""Stripe Checkout helpers for booking payments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import stripe
from django.conf import settings
from django.utils import timezone

from bookings.models import Booking
from core.errors import ExternalServiceError, NotFoundError, PaymentError, ValidationError

logger = logging.getLogger(__name__)

CHECKOUT_KIND = "booking_checkout"
CONFIRM_PATH = "/api/payments/confirm/"

# Stripe accepts expires_at between 30 minutes and 24 hours out.
SESSION_MIN_LIFETIME = timedelta(minutes=31)
SESSION_MAX_LIFETIME = timedelta(hours=24)
SESSION_EXPIRY_MARGIN = timedelta(minutes=5)


class StripeConfigurationError(ExternalServiceError):
    """Stripe is not configured correctly in the environment."""

    def __init__(self, message: str | None = None, **kwargs):
        kwargs.setdefault("service", "stripe")
        super().__init__(message, **kwargs)


class StripeTransientError(ExternalServiceError):
    """Temporary Stripe/API issue; safe for the caller to retry later."""

    def __init__(self, message: str | None = None, **kwargs):
        kwargs.setdefault("service", "stripe")
        super().__init__(message, **kwargs)


class StripePaymentError(PaymentError):
    """Stripe rejected the payment request itself."""


@dataclass(frozen=True)
class CheckoutSessionHandle:
    session_id: str
    client_secret: str


def _get_stripe_api_key() -> str:
    """Return the configured Stripe API key or raise if missing."""
    api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
    if not api_key:
        raise StripeConfigurationError("Stripe secret key not configured.")
    return api_key


def _configure_stripe() -> None:
    """Set credentials and a bounded, non-retrying HTTP client for the SDK."""
    stripe.api_key = _get_stripe_api_key()
    stripe.max_network_retries = 0
    timeout = float(getattr(settings, "STRIPE_REQUEST_TIMEOUT", 10.0))
    client = stripe.default_http_client
    if getattr(client, "_timeout", None) != timeout:
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)


def _handle_stripe_error(exc: stripe.StripeError) -> None:
    """Map Stripe SDK errors onto internal exception types."""
    if isinstance(exc, stripe.CardError):
        message = exc.user_message or "Your card was declined."
        raise StripePaymentError(message) from exc
    if isinstance(
        exc,
        (
            stripe.RateLimitError,
            stripe.APIConnectionError,
            stripe.APIError,
        ),
    ):
        raise StripeTransientError("Temporary Stripe error, please retry.") from exc
    if isinstance(exc, (stripe.AuthenticationError, stripe.PermissionError)):
        raise StripeConfigurationError("Stripe credentials are invalid or unauthorized.") from exc
    if isinstance(exc, stripe.InvalidRequestError):
        raise StripePaymentError("Invalid payment request.") from exc
    raise StripePaymentError("Stripe payment failure.") from exc


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Safely fetch a field from a Stripe object or dict payload."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _get_frontend_origin() -> str:
    """Return the configured frontend origin or a local fallback."""
    configured = (getattr(settings, "FRONTEND_ORIGIN", "") or "").strip()
    base = configured or "http://localhost:3000"
    return base.rstrip("/") or base


def _validated_return_origin(return_origin: str) -> str:
    origin = (return_origin or "").strip().rstrip("/")
    allowed = {
        item.strip().rstrip("/")
        for item in getattr(settings, "CHECKOUT_ALLOWED_ORIGINS", [])
        if item and item.strip()
    }
    if not origin or (allowed and origin not in allowed):
        raise ValidationError("Return origin is not allowed.", field="origin")
    return origin


def _session_expires_at(booking: Booking) -> datetime:
    """
    Deadline for the Checkout session of a pending booking.

    The session must close before the pending-booking purge can delete the
    booking, otherwise a late payment would have nothing to confirm.
    """
    now = timezone.now()
    ttl = timedelta(hours=getattr(settings, "PENDING_BOOKING_TTL_HOURS", 24))
    expires_at = min(
        booking.created_at + ttl - SESSION_EXPIRY_MARGIN,
        now + SESSION_MAX_LIFETIME,
    )
    if expires_at - now < SESSION_MIN_LIFETIME:
        raise PaymentError(
            "This booking attempt has expired, please book again.",
            context={"booking_id": booking.id},
        )
    return expires_at


def _line_item_description(booking: Booking) -> str:
    nights = booking.total_nights
    noun = "night" if nights == 1 else "nights"
    return (
        f"Stay at {booking.property.name} for {nights} {noun} "
        f"({booking.check_in:%b %d, %Y} to {booking.check_out:%b %d, %Y})"
    )


def create_booking_checkout_session(
    booking_id: int | str,
    *,
    return_origin: str,
    profile=None,
) -> CheckoutSessionHandle:
    """
    Create an embedded Stripe Checkout session for a pending booking.

    The booking id travels only inside the session metadata; the confirm
    redirect carries nothing but Stripe's session id.
    """
    try:
        pk = int(booking_id)
    except (TypeError, ValueError):
        raise NotFoundError("Booking", context={"booking_id": booking_id}) from None

    qs = Booking.objects.select_related("property").filter(pk=pk)
    if profile is not None:
        qs = qs.filter(profile=profile)
    booking = qs.first()
    if booking is None:
        raise NotFoundError("Booking", context={"booking_id": pk})
    if booking.payment_status:
        raise PaymentError("This booking has already been paid.", context={"booking_id": pk})
    if booking.order_total_cents <= 0:
        raise PaymentError("Booking total must be greater than zero.", context={"booking_id": pk})

    origin = _validated_return_origin(return_origin)
    expires_at = _session_expires_at(booking)
    _configure_stripe()

    metadata = {
        "booking_id": str(booking.id),
        "kind": CHECKOUT_KIND,
        "env": getattr(settings, "STRIPE_ENV", "dev") or "dev",
    }
    try:
        session = stripe.checkout.Session.create(
            ui_mode="embedded",
            mode="payment",
            client_reference_id=f"booking:{booking.id}",
            metadata=metadata,
            expires_at=int(expires_at.timestamp()),
            line_items=[
                {
                    "price_data": {
                        "currency": getattr(settings, "STRIPE_CURRENCY", "usd"),
                        "unit_amount": booking.order_total_cents,
                        "product_data": {
                            "name": booking.property.name,
                            "description": _line_item_description(booking),
                        },
                    },
                    "quantity": 1,
                }
            ],
            return_url=f"{origin}{CONFIRM_PATH}?session_id={{CHECKOUT_SESSION_ID}}",
        )
    except stripe.StripeError as exc:
        logger.exception(
            "stripe: checkout session create failed",
            extra={"booking_id": booking.id},
        )
        _handle_stripe_error(exc)

    session_id = _field(session, "id") or ""
    client_secret = _field(session, "client_secret") or ""
    if not session_id or not client_secret:
        raise StripePaymentError(
            "Stripe did not return a checkout session.",
            context={"booking_id": booking.id},
        )

    Booking.objects.filter(pk=booking.id).update(stripe_session_id=session_id)
    logger.info(
        "stripe: checkout session created",
        extra={"booking_id": booking.id, "session_id": session_id},
    )
    return CheckoutSessionHandle(session_id=session_id, client_secret=client_secret)


def retrieve_checkout_session(session_id: str) -> Any:
    """Fetch a Checkout session from Stripe by id."""
    _configure_stripe()
    try:
        return stripe.checkout.Session.retrieve(session_id)
    except stripe.StripeError as exc:
        logger.exception(
            "stripe: checkout session retrieve failed",
            extra={"session_id": session_id},
        )
        _handle_stripe_error(exc)

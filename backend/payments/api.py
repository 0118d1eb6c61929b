"""Checkout, confirmation redirect and webhook endpoints for booking payments."""

from __future__ import annotations

import logging

import stripe
from django.conf import settings
from django.http import HttpResponseRedirect
from rest_framework import status
from rest_framework.decorators import (
    api_view,
    authentication_classes,
    permission_classes,
)
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from core.errors import (
    AppError,
    ConflictError,
    NotFoundError,
    PersistenceAfterPaymentError,
    error_response,
)

from .confirmation import (
    SESSION_COMPLETE,
    confirm_payment_redirect,
    mark_booking_paid,
    parse_session_metadata,
)
from .stripe_api import CHECKOUT_KIND, create_booking_checkout_session

logger = logging.getLogger(__name__)


def _request_origin(request) -> str:
    origin = (request.headers.get("Origin") or "").strip()
    if origin:
        return origin
    return request.build_absolute_uri("/").rstrip("/")


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def create_checkout_session(request):
    """Start an embedded Stripe Checkout for one of the caller's pending bookings."""
    booking_id = request.data.get("booking_id")
    if booking_id in (None, ""):
        return Response(
            {"detail": "booking_id is required.", "kind": "validation", "field": "booking_id"},
            status=status.HTTP_400_BAD_REQUEST,
        )
    try:
        handle = create_booking_checkout_session(
            booking_id,
            return_origin=_request_origin(request),
            profile=request.user,
        )
    except AppError as exc:
        logger.warning(
            "payments: checkout session not created (%s)",
            exc.kind,
            extra={"profile_id": request.user.id, **exc.log_extra()},
        )
        return error_response(exc)
    return Response(
        {"client_secret": handle.client_secret, "session_id": handle.session_id},
        status=status.HTTP_200_OK,
    )


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def confirm(request):
    """Stripe return_url target; always answers with a redirect to the frontend."""
    target = confirm_payment_redirect(request.query_params.get("session_id"))
    return HttpResponseRedirect(target)


@api_view(["POST"])
@authentication_classes([])
@permission_classes([])
def stripe_webhook(request):
    """Handle Stripe webhook callbacks for booking Checkout sessions."""
    payload = request.body
    sig_header = request.META.get("HTTP_STRIPE_SIGNATURE", "")
    endpoint_secret = getattr(settings, "STRIPE_WEBHOOK_SECRET", "")

    try:
        event = stripe.Webhook.construct_event(
            payload=payload,
            sig_header=sig_header,
            secret=endpoint_secret,
        )
    except ValueError:
        return Response(status=status.HTTP_400_BAD_REQUEST)
    except stripe.SignatureVerificationError:
        return Response(status=status.HTTP_400_BAD_REQUEST)

    event_type = event.get("type")
    if event_type != "checkout.session.completed":
        return Response(status=status.HTTP_200_OK)

    data_object = event.get("data", {}).get("object", {}) or {}
    metadata = data_object.get("metadata") or {}
    kind = metadata.get("kind")
    if kind is not None and kind != CHECKOUT_KIND:
        return Response(status=status.HTTP_200_OK)

    session_id = data_object.get("id", "")
    if not session_id:
        logger.warning("stripe_webhook: booking session missing id")
        return Response(status=status.HTTP_200_OK)
    if data_object.get("status") != SESSION_COMPLETE:
        logger.info("stripe_webhook: session %s not complete, ignoring", session_id)
        return Response(status=status.HTTP_200_OK)

    try:
        booking_id = parse_session_metadata(metadata)
        mark_booking_paid(booking_id, session_id=session_id)
    except PersistenceAfterPaymentError:
        # Non-2xx makes Stripe redeliver; the transition is idempotent.
        return Response(status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    except (ConflictError, NotFoundError):
        # Logged for reconciliation; redelivery cannot fix either.
        return Response(status=status.HTTP_200_OK)
    except AppError as exc:
        logger.warning(
            "stripe_webhook: booking session %s not applied (%s)",
            session_id,
            exc.kind,
            extra=exc.log_extra(),
        )
    return Response(status=status.HTTP_200_OK)

"""Application failure taxonomy shared by the booking and payment flows.

Every failure carries a ``kind`` so logs can tell "our bug" apart from
"their outage" even when the user only sees a coarse outcome.
"""

from __future__ import annotations

from typing import Any

from rest_framework import status
from rest_framework.response import Response


class AppError(Exception):
    """Base class for expected, classified application failures."""

    kind = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong."

    def __init__(self, message: str | None = None, *, context: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.context = dict(context or {})
        super().__init__(self.message)

    def log_extra(self) -> dict[str, Any]:
        """Return a flat dict suitable for ``logger.*(..., extra=...)``."""
        extra = {"failure_kind": self.kind}
        extra.update(self.context)
        return extra


class ValidationError(AppError):
    """Malformed input: inverted dates, missing identifiers, bad totals."""

    kind = "validation"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."

    def __init__(self, message: str | None = None, *, field: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        if field:
            self.context.setdefault("field", field)


class NotFoundError(AppError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", **kwargs):
        super().__init__(f"{resource} not found", **kwargs)
        self.resource = resource


class ConflictError(AppError):
    """Dates already taken, duplicate review, and similar."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "The request conflicts with existing data."


class PaymentError(AppError):
    """The payment cannot proceed: already paid, incomplete session, foreign session."""

    kind = "payment"
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "Payment could not be processed."


class ExternalServiceError(AppError):
    """The payment provider (or another upstream) failed or is unreachable."""

    kind = "external_service"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "An upstream service is unavailable."

    def __init__(self, message: str | None = None, *, service: str = "upstream", **kwargs):
        super().__init__(message, **kwargs)
        self.service = service
        self.context.setdefault("service", service)


class PersistenceAfterPaymentError(AppError):
    """
    The provider reports the payment complete but the local booking
    could not be marked paid. Money has moved; local state has not.
    """

    kind = "persistence_after_payment"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Payment received but the booking could not be updated."


def error_response(exc: AppError) -> Response:
    """Serialize an ``AppError`` without leaking provider or stack details."""
    payload: dict[str, Any] = {"detail": exc.message, "kind": exc.kind}
    field = getattr(exc, "field", None)
    if field:
        payload["field"] = field
    return Response(payload, status=exc.status_code)

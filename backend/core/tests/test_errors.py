import pytest
from django.db import DatabaseError

from core import health
from core.errors import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PaymentError,
    PersistenceAfterPaymentError,
    ValidationError,
    error_response,
)


@pytest.mark.parametrize(
    ("exc", "status_code", "kind"),
    [
        (ValidationError("bad dates", field="dateRange"), 400, "validation"),
        (NotFoundError("Booking"), 404, "not_found"),
        (ConflictError(), 409, "conflict"),
        (PaymentError(), 402, "payment"),
        (ExternalServiceError(service="stripe"), 502, "external_service"),
        (PersistenceAfterPaymentError(), 500, "persistence_after_payment"),
    ],
)
def test_error_response_carries_kind_and_status(exc, status_code, kind):
    resp = error_response(exc)

    assert resp.status_code == status_code
    assert resp.data["kind"] == kind
    assert resp.data["detail"] == exc.message


def test_validation_error_exposes_field():
    exc = ValidationError("Check-out date must be after check-in date.", field="dateRange")

    assert error_response(exc).data["field"] == "dateRange"
    assert exc.log_extra() == {"failure_kind": "validation", "field": "dateRange"}


def test_not_found_message_names_resource():
    assert NotFoundError("Property").message == "Property not found"


def test_context_is_copied_into_log_extra():
    context = {"booking_id": 7}
    exc = ConflictError(context=context)
    context["booking_id"] = 8

    assert exc.log_extra() == {"failure_kind": "conflict", "booking_id": 7}


@pytest.mark.django_db
def test_healthz_ok(api_client):
    resp = api_client.get("/api/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_healthz_reports_database_outage(monkeypatch, rf):
    class _BrokenConnection:
        def cursor(self):
            raise DatabaseError("down")

    monkeypatch.setattr(health, "connection", _BrokenConnection())

    resp = health.healthz(rf.get("/api/healthz"))
    assert resp.status_code == 503

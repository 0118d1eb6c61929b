"""HTTP-level tests for checkout, confirmation redirect and webhook."""

from __future__ import annotations

import pytest
import stripe
from rest_framework.test import APIRequestFactory

from bookings.tests.fixtures import auth, future
from payments.api import stripe_webhook

pytestmark = pytest.mark.django_db


@pytest.fixture
def pending_booking(booking_factory):
    return booking_factory(check_in=future(10), check_out=future(13))


def _webhook_event(session):
    return {"type": "checkout.session.completed", "data": {"object": session}}


def test_checkout_session_endpoint_returns_client_secret(
    monkeypatch, stripe_configured, guest_user, pending_booking
):
    captured = {}

    def _create(**kwargs):
        captured.update(kwargs)
        return {"id": "cs_test_api", "client_secret": "cs_test_api_secret"}

    monkeypatch.setattr(stripe.checkout.Session, "create", _create)
    client = auth(guest_user)

    resp = client.post(
        "/api/payments/checkout-session/",
        {"booking_id": pending_booking.id},
        format="json",
    )

    assert resp.status_code == 200, resp.data
    assert resp.data == {"client_secret": "cs_test_api_secret", "session_id": "cs_test_api"}
    assert captured["return_url"].startswith("http://testserver/api/payments/confirm/")


def test_checkout_session_endpoint_maps_failures(
    monkeypatch, stripe_configured, guest_user, other_user, pending_booking
):
    def _create(**kwargs):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.checkout.Session, "create", _create)

    resp = auth(guest_user).post(
        "/api/payments/checkout-session/",
        {"booking_id": pending_booking.id},
        format="json",
    )
    assert resp.status_code == 502
    assert resp.data["kind"] == "external_service"
    assert "network down" not in resp.data["detail"]

    resp = auth(other_user).post(
        "/api/payments/checkout-session/",
        {"booking_id": pending_booking.id},
        format="json",
    )
    assert resp.status_code == 404

    resp = auth(guest_user).post("/api/payments/checkout-session/", {}, format="json")
    assert resp.status_code == 400


def test_checkout_session_requires_authentication(api_client, pending_booking):
    resp = api_client.post(
        "/api/payments/checkout-session/",
        {"booking_id": pending_booking.id},
        format="json",
    )
    assert resp.status_code == 401


def test_confirm_endpoint_redirects_to_success(
    api_client, pending_booking, fake_session, stripe_retrieve
):
    stripe_retrieve(fake_session(pending_booking.id))

    resp = api_client.get("/api/payments/confirm/?session_id=cs_test_123")

    assert resp.status_code == 302
    assert resp["Location"] == "http://testserver-frontend/bookings"
    pending_booking.refresh_from_db()
    assert pending_booking.payment_status is True


def test_confirm_endpoint_ignores_booking_id_query_param(
    api_client, pending_booking, booking_factory, fake_session, stripe_retrieve
):
    other = booking_factory(check_in=future(30), check_out=future(32))
    stripe_retrieve(fake_session(pending_booking.id))

    resp = api_client.get(
        f"/api/payments/confirm/?session_id=cs_test_123&booking_id={other.id}"
    )

    assert resp.status_code == 302
    other.refresh_from_db()
    assert other.payment_status is False


def test_confirm_endpoint_redirects_to_failure(
    api_client, pending_booking, fake_session, stripe_retrieve
):
    stripe_retrieve(fake_session(pending_booking.id, status="open"))

    resp = api_client.get("/api/payments/confirm/?session_id=cs_test_123")

    assert resp.status_code == 302
    assert resp["Location"] == "http://testserver-frontend/bookings?error=payment_failed"
    pending_booking.refresh_from_db()
    assert pending_booking.payment_status is False


def test_webhook_checkout_completed_marks_booking_paid(monkeypatch, pending_booking, fake_session):
    event_payload = _webhook_event(fake_session(pending_booking.id, session_id="cs_test_hook"))
    monkeypatch.setattr(
        stripe.Webhook,
        "construct_event",
        lambda payload, sig_header, secret: event_payload,
    )
    factory = APIRequestFactory()

    for _ in range(2):
        request = factory.post("/api/payments/stripe/webhook/", data={}, format="json")
        response = stripe_webhook(request)
        assert response.status_code == 200

    pending_booking.refresh_from_db()
    assert pending_booking.payment_status is True
    assert pending_booking.stripe_session_id == "cs_test_hook"


def test_webhook_ignores_other_checkout_kinds(monkeypatch, pending_booking, fake_session):
    event_payload = _webhook_event(fake_session(pending_booking.id, kind="promotion_slot"))
    monkeypatch.setattr(
        stripe.Webhook,
        "construct_event",
        lambda payload, sig_header, secret: event_payload,
    )

    request = APIRequestFactory().post("/api/payments/stripe/webhook/", data={}, format="json")
    response = stripe_webhook(request)

    assert response.status_code == 200
    pending_booking.refresh_from_db()
    assert pending_booking.payment_status is False


def test_webhook_rejects_bad_signature(api_client):
    resp = api_client.post(
        "/api/payments/stripe/webhook/",
        data="{}",
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE="t=1,v1=bogus",
    )
    assert resp.status_code == 400


def test_confirm_endpoint_redirects_to_success_when_cache_backend_fails(
    monkeypatch,
    api_client,
    pending_booking,
    fake_session,
    stripe_retrieve,
    django_capture_on_commit_callbacks,
    caplog,
):
    stripe_retrieve(fake_session(pending_booking.id))

    def _redis_down(booking_id):
        raise ConnectionError("redis down")

    monkeypatch.setattr("payments.confirmation.invalidate_for_booking_id", _redis_down)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        resp = api_client.get("/api/payments/confirm/?session_id=cs_test_123")

    assert len(callbacks) == 1
    assert resp.status_code == 302
    assert resp["Location"] == "http://testserver-frontend/bookings"
    pending_booking.refresh_from_db()
    assert pending_booking.payment_status is True
    assert any("cache invalidation failed" in r.getMessage() for r in caplog.records)


def test_confirmation_refreshes_cached_booking_list(
    guest_user, pending_booking, fake_session, stripe_retrieve, django_capture_on_commit_callbacks
):
    client = auth(guest_user)
    stripe_retrieve(fake_session(pending_booking.id))
    assert client.get("/api/bookings/").data == []

    with django_capture_on_commit_callbacks(execute=True):
        resp = client.get("/api/payments/confirm/?session_id=cs_test_123")
    assert resp.status_code == 302

    assert [item["id"] for item in client.get("/api/bookings/").data] == [pending_booking.id]


def test_webhook_accepts_session_without_kind(monkeypatch, pending_booking, fake_session):
    session = fake_session(pending_booking.id, session_id="cs_test_nokind")
    del session["metadata"]["kind"]
    event_payload = _webhook_event(session)
    monkeypatch.setattr(
        stripe.Webhook,
        "construct_event",
        lambda payload, sig_header, secret: event_payload,
    )

    request = APIRequestFactory().post("/api/payments/stripe/webhook/", data={}, format="json")
    response = stripe_webhook(request)

    assert response.status_code == 200
    pending_booking.refresh_from_db()
    assert pending_booking.payment_status is True
    assert pending_booking.stripe_session_id == "cs_test_nokind"


def test_webhook_for_deleted_booking_is_acknowledged_and_flagged(
    monkeypatch, pending_booking, fake_session, caplog
):
    event_payload = _webhook_event(fake_session(pending_booking.id))
    pending_booking.delete()
    monkeypatch.setattr(
        stripe.Webhook,
        "construct_event",
        lambda payload, sig_header, secret: event_payload,
    )

    request = APIRequestFactory().post("/api/payments/stripe/webhook/", data={}, format="json")
    response = stripe_webhook(request)

    assert response.status_code == 200
    assert any(
        r.levelname == "CRITICAL" and getattr(r, "reconciliation_required", False)
        for r in caplog.records
    )

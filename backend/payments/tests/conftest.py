from __future__ import annotations

import pytest
import stripe


@pytest.fixture
def stripe_configured(settings):
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    settings.STRIPE_ENV = "test"
    settings.STRIPE_CURRENCY = "usd"
    return settings


@pytest.fixture
def fake_session():
    def _build(booking_id, *, status="complete", session_id="cs_test_123", **metadata_overrides):
        metadata = {"booking_id": str(booking_id), "kind": "booking_checkout", "env": "test"}
        metadata.update(metadata_overrides)
        return {
            "id": session_id,
            "status": status,
            "client_secret": f"{session_id}_secret_abc",
            "metadata": metadata,
        }

    return _build


@pytest.fixture
def stripe_retrieve(monkeypatch, stripe_configured):
    """Make ``stripe.checkout.Session.retrieve`` return the given payload."""

    calls: list[str] = []

    def _install(payload=None, *, error: Exception | None = None):
        def _retrieve(session_id, **kwargs):
            calls.append(session_id)
            if error is not None:
                raise error
            return payload

        monkeypatch.setattr(stripe.checkout.Session, "retrieve", _retrieve)
        return calls

    return _install

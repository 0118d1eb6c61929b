"""Shared fixtures for bookings, payments, reviews and favorites tests."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from bookings.models import Booking
from properties.models import Property
from properties.services import compute_booking_totals

User = get_user_model()


def _create_user(*, username: str) -> User:
    return User.objects.create_user(
        username=username,
        password="testpass",
        email=f"{username}@example.com",
    )


@pytest.fixture
def owner_user():
    return _create_user(username="owner")


@pytest.fixture
def guest_user():
    return _create_user(username="guest")


@pytest.fixture
def other_user():
    return _create_user(username="other")


@pytest.fixture
def property_factory(owner_user) -> Callable[..., Property]:
    def _create_property(*, owner=None, price="100.00", **extra_fields) -> Property:
        fields = {
            "name": "Lakeside Cabin",
            "tagline": "Quiet cabin by the water",
            "category": "cabin",
            "country": "CA",
            "description": "Two bedrooms, wood stove, private dock.",
            "guests": 4,
            "bedrooms": 2,
            "beds": 2,
            "baths": 1,
            "amenities": ["wifi", "parking"],
        }
        fields.update(extra_fields)
        return Property.objects.create(
            owner=owner or owner_user,
            price=Decimal(price),
            **fields,
        )

    return _create_property


@pytest.fixture
def stay(property_factory):
    return property_factory()


@pytest.fixture
def booking_factory(stay, guest_user) -> Callable[..., Booking]:
    def _create_booking(
        *,
        property_override: Property | None = None,
        profile=None,
        check_in: date,
        check_out: date,
        payment_status: bool = False,
        **extra_fields,
    ) -> Booking:
        selected = property_override or stay
        totals = compute_booking_totals(
            check_in=check_in,
            check_out=check_out,
            price=selected.price,
        )
        return Booking.objects.create(
            property=selected,
            profile=profile or guest_user,
            check_in=check_in,
            check_out=check_out,
            total_nights=totals.total_nights,
            order_total_cents=totals.order_total_cents,
            totals=totals.as_dict(),
            payment_status=payment_status,
            **extra_fields,
        )

    return _create_booking


def future(days: int) -> date:
    return date.today() + timedelta(days=days)


def auth(user) -> APIClient:
    """Return an APIClient carrying a JWT for ``user`` (password "testpass")."""
    client = APIClient()
    token_resp = client.post(
        "/api/users/token/",
        {"username": user.username, "password": "testpass"},
        format="json",
    )
    token = token_resp.data["access"]
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client

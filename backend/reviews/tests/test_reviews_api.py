from __future__ import annotations

import pytest

from bookings.tests.fixtures import auth
from reviews.models import Review

pytestmark = pytest.mark.django_db


def test_guest_can_review_property_once(guest_user, stay):
    client = auth(guest_user)
    payload = {"property": stay.id, "rating": 4, "comment": "Lovely dock."}

    resp = client.post("/api/reviews/", payload, format="json")
    assert resp.status_code == 201, resp.data
    assert resp.data["author"] == guest_user.id

    again = client.post("/api/reviews/", payload, format="json")
    assert again.status_code == 400
    assert Review.objects.filter(property=stay).count() == 1


def test_owner_cannot_review_own_property(owner_user, stay):
    resp = auth(owner_user).post(
        "/api/reviews/",
        {"property": stay.id, "rating": 5, "comment": "Best place ever."},
        format="json",
    )
    assert resp.status_code == 400
    assert not Review.objects.exists()


@pytest.mark.parametrize("rating", [0, 6])
def test_rating_must_be_between_one_and_five(guest_user, stay, rating):
    resp = auth(guest_user).post(
        "/api/reviews/",
        {"property": stay.id, "rating": rating, "comment": "Hmm."},
        format="json",
    )
    assert resp.status_code == 400
    assert "rating" in resp.data


def test_property_reviews_and_rating_are_public(api_client, guest_user, other_user, stay):
    Review.objects.create(property=stay, author=guest_user, rating=5, comment="Great")
    Review.objects.create(property=stay, author=other_user, rating=4, comment="Good")

    resp = api_client.get(f"/api/reviews/?property={stay.id}")
    assert resp.status_code == 200
    assert len(resp.data) == 2
    assert {item["comment"] for item in resp.data} == {"Great", "Good"}

    rating = api_client.get(f"/api/reviews/rating/?property={stay.id}")
    assert rating.status_code == 200
    assert rating.data == {"rating": 4.5, "count": 2}


def test_rating_without_reviews_is_zero(api_client, stay):
    resp = api_client.get(f"/api/reviews/rating/?property={stay.id}")
    assert resp.data == {"rating": 0, "count": 0}


def test_list_requires_property_param(api_client):
    assert api_client.get("/api/reviews/").status_code == 400


def test_mine_and_delete_own_review(guest_user, other_user, stay, property_factory):
    second = property_factory(name="Desert Dome")
    mine = Review.objects.create(property=stay, author=guest_user, rating=3, comment="Ok")
    theirs = Review.objects.create(property=second, author=other_user, rating=2, comment="Meh")
    client = auth(guest_user)

    resp = client.get("/api/reviews/mine/")
    assert [item["id"] for item in resp.data] == [mine.id]
    assert resp.data[0]["property_name"] == stay.name

    assert client.delete(f"/api/reviews/{theirs.id}/").status_code == 404
    assert client.delete(f"/api/reviews/{mine.id}/").status_code == 204
    assert not Review.objects.filter(pk=mine.id).exists()
    assert Review.objects.filter(pk=theirs.id).exists()

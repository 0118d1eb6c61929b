from __future__ import annotations

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Avg, Count, Q


class Review(models.Model):
    property = models.ForeignKey(
        "properties.Property",
        on_delete=models.CASCADE,
        related_name="reviews",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reviews",
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    comment = models.TextField(max_length=1000)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["property", "author"],
                name="unique_review_per_property_author",
            ),
            models.CheckConstraint(
                condition=Q(rating__gte=1) & Q(rating__lte=5),
                name="review_rating_between_1_and_5",
            ),
        ]

    def __str__(self) -> str:
        return f"Review by {self.author_id} for property {self.property_id}"


def property_rating(property_id: int) -> dict[str, float | int]:
    """Average rating (one decimal) and review count for a property."""
    agg = Review.objects.filter(property_id=property_id).aggregate(
        avg=Avg("rating"),
        count=Count("id"),
    )
    avg = agg.get("avg")
    return {
        "rating": round(float(avg), 1) if avg is not None else 0,
        "count": agg.get("count") or 0,
    }

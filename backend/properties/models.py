from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class Property(models.Model):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="properties",
    )
    name = models.CharField(max_length=140)
    tagline = models.CharField(max_length=200, blank=True)
    category = models.CharField(max_length=60, blank=True)
    country = models.CharField(max_length=2, blank=True, help_text="ISO 3166-1 alpha-2 code.")
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
        help_text="Nightly price in whole currency units.",
    )
    guests = models.PositiveSmallIntegerField(default=1)
    bedrooms = models.PositiveSmallIntegerField(default=1)
    beds = models.PositiveSmallIntegerField(default=1)
    baths = models.PositiveSmallIntegerField(default=1)
    amenities = models.JSONField(default=list, blank=True)
    image_url = models.URLField(max_length=1024, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "properties"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="property_price_positive",
            ),
        ]

    def clean(self):
        if not self.name or len(self.name.strip()) < 2:
            raise ValidationError("Name too short")
        if self.price and self.price > 10000:
            raise ValidationError("Unreasonable price")

    def __str__(self) -> str:
        return f"{self.name} (#{self.pk})"

"""Database models for stays."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from properties.models import Property


class BookingQuerySet(models.QuerySet):
    def paid(self):
        return self.filter(payment_status=True)

    def pending(self):
        return self.filter(payment_status=False)

    def overlapping(self, check_in, check_out):
        """Bookings whose [check_in, check_out) intersects the given half-open range."""
        return self.filter(check_in__lt=check_out, check_out__gt=check_in)


class Booking(models.Model):
    """A stay at a property; pending until its checkout session completes."""

    profile = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="bookings",
        on_delete=models.CASCADE,
    )
    property = models.ForeignKey(
        Property,
        related_name="bookings",
        on_delete=models.CASCADE,
    )
    check_in = models.DateField()
    check_out = models.DateField(help_text="Checkout date (exclusive), must be after check_in.")
    total_nights = models.PositiveIntegerField()
    order_total_cents = models.PositiveIntegerField(
        help_text="Locked at creation from the property's price at that moment.",
    )
    totals = models.JSONField(default=dict, blank=True)
    payment_status = models.BooleanField(default=False)
    stripe_session_id = models.CharField(max_length=255, blank=True, default="")
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["property", "payment_status", "check_in", "check_out"],
                name="booking_prop_paid_dates_idx",
            ),
            models.Index(fields=["profile", "payment_status"], name="booking_profile_paid_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(check_out__gt=F("check_in")),
                name="booking_check_out_after_check_in",
            ),
        ]

    def __str__(self) -> str:
        state = "paid" if self.payment_status else "pending"
        return f"Booking #{self.pk} for {self.property_id} ({state})"

    def order_total_amount(self) -> Decimal:
        """Order total in whole currency units."""
        return (Decimal(self.order_total_cents) / Decimal("100")).quantize(Decimal("0.01"))

"""Serializers for booking-related API endpoints."""

from __future__ import annotations

from rest_framework import serializers

from .models import Booking


class BookingCreateSerializer(serializers.Serializer):
    """Validate the shape of a booking request; the service owns the rules."""

    property = serializers.IntegerField(min_value=1)
    check_in = serializers.DateField()
    check_out = serializers.DateField()


class BookingSerializer(serializers.ModelSerializer):
    """Serialize Booking instances for API usage."""

    booking_id = serializers.ReadOnlyField(source="id")
    property_name = serializers.ReadOnlyField(source="property.name")
    property_country = serializers.ReadOnlyField(source="property.country")
    property_image_url = serializers.ReadOnlyField(source="property.image_url")
    order_total = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = (
            "id",
            "booking_id",
            "property",
            "property_name",
            "property_country",
            "property_image_url",
            "check_in",
            "check_out",
            "total_nights",
            "order_total",
            "order_total_cents",
            "totals",
            "payment_status",
            "paid_at",
            "created_at",
        )
        read_only_fields = fields

    def get_order_total(self, obj: Booking) -> str:
        return str(obj.order_total_amount())


class ReservationSerializer(BookingSerializer):
    """A paid booking as seen by the owner of the property."""

    guest_username = serializers.ReadOnlyField(source="profile.username")
    guest_first_name = serializers.ReadOnlyField(source="profile.first_name")
    guest_avatar_url = serializers.ReadOnlyField(source="profile.avatar_url")

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + (
            "guest_username",
            "guest_first_name",
            "guest_avatar_url",
        )
        read_only_fields = fields

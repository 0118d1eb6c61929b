"""API viewsets for bookings."""

from __future__ import annotations

import logging

from django.core.cache import cache
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.errors import AppError, error_response
from properties.models import Property

from .cache import (
    availability_cache_key,
    availability_cache_timeout,
    my_bookings_cache_key,
    my_bookings_cache_timeout,
)
from .domain import booked_ranges
from .models import Booking
from .serializers import BookingCreateSerializer, BookingSerializer, ReservationSerializer
from .services import create_booking, delete_booking, purge_pending_bookings

logger = logging.getLogger(__name__)


class BookingViewSet(viewsets.GenericViewSet):
    """Create, list and delete the authenticated guest's bookings."""

    serializer_class = BookingSerializer
    permission_classes = (permissions.IsAuthenticated,)

    def get_queryset(self):
        """Restrict to the caller's confirmed bookings."""
        user = self.request.user
        if not user.is_authenticated:
            return Booking.objects.none()
        return (
            Booking.objects.paid()
            .filter(profile=user)
            .select_related("property")
            .order_by("-created_at")
        )

    def list(self, request, *args, **kwargs):
        cache_key = my_bookings_cache_key(request.user.id)
        cached = cache.get(cache_key)
        if cached is not None:
            return Response(cached)
        data = self.get_serializer(self.get_queryset(), many=True).data
        cache.set(cache_key, data, my_bookings_cache_timeout())
        return Response(data)

    def create(self, request, *args, **kwargs):
        """Start a booking attempt; the result stays pending until paid."""
        # Every attempt clears the caller's abandoned checkouts, even a malformed one.
        purge_pending_bookings(request.user)
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payload = serializer.validated_data
        try:
            booking = create_booking(
                request.user,
                payload["property"],
                payload["check_in"],
                payload["check_out"],
            )
        except AppError as exc:
            logger.info(
                "bookings: create rejected (%s)",
                exc.kind,
                extra={"profile_id": request.user.id, **exc.log_extra()},
            )
            return error_response(exc)
        return Response(self.get_serializer(booking).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None, *args, **kwargs):
        try:
            delete_booking(request.user, pk)
        except AppError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(
        detail=False,
        methods=["get"],
        url_path="availability",
        permission_classes=[permissions.AllowAny],
    )
    def availability(self, request, *args, **kwargs):
        """Return booked [check_in, check_out) ranges for a property."""
        property_param = request.query_params.get("property")
        if not property_param:
            return Response(
                {"detail": "property query parameter is required."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            property_id = int(property_param)
        except (TypeError, ValueError):
            return Response(
                {"detail": "property must be a valid integer."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        prop = get_object_or_404(Property, pk=property_id)
        cache_key = availability_cache_key(prop.pk)
        payload = cache.get(cache_key)
        if payload is None:
            payload = booked_ranges(prop)
            cache.set(cache_key, payload, availability_cache_timeout())
        return Response(payload, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="reservations")
    def reservations(self, request, *args, **kwargs):
        """Paid bookings on properties the caller owns."""
        qs = (
            Booking.objects.paid()
            .filter(property__owner=request.user)
            .select_related("property", "profile")
            .order_by("-created_at")
        )
        return Response(ReservationSerializer(qs, many=True).data)

from __future__ import annotations

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .cache import invalidate_availability, invalidate_my_bookings_for_users
from .models import Booking


@receiver(post_save, sender=Booking, dispatch_uid="bookings_cache_invalidate_on_save")
@receiver(post_delete, sender=Booking, dispatch_uid="bookings_cache_invalidate_on_delete")
def _invalidate_booking_cache(sender, instance: Booking, **kwargs):
    invalidate_my_bookings_for_users([instance.profile_id])
    invalidate_availability(instance.property_id)


def invalidate_for_booking_id(booking_id: int) -> None:
    """Bust caches after a queryset ``update()``, which sends no signals."""
    row = Booking.objects.filter(pk=booking_id).values("profile_id", "property_id").first()
    if row is None:
        return
    invalidate_my_bookings_for_users([row["profile_id"]])
    invalidate_availability(row["property_id"])

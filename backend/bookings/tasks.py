"""Celery tasks for bookings."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings

from .services import purge_abandoned_pending_bookings as _purge_abandoned

logger = logging.getLogger(__name__)


@shared_task(name="bookings.purge_abandoned_pending_bookings")
def purge_abandoned_pending_bookings() -> int:
    """
    Delete unpaid bookings whose checkout was abandoned long ago.

    Returns the number of bookings removed.
    """
    ttl_hours = int(getattr(settings, "PENDING_BOOKING_TTL_HOURS", 24))
    deleted = _purge_abandoned(older_than=timedelta(hours=ttl_hours))
    if deleted:
        logger.info(
            "bookings: purged %s abandoned pending booking(s)",
            deleted,
            extra={"ttl_hours": ttl_hours},
        )
    return deleted

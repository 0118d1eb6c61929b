from __future__ import annotations

from typing import Iterable, Set

from django.conf import settings
from django.core.cache import cache

MY_BOOKINGS_VERSION_KEY = "bookings:my:version:{user_id}"
AVAILABILITY_VERSION_KEY = "bookings:availability:version:{property_id}"


def _get_version(key: str) -> int:
    version = cache.get(key)
    if version is None:
        cache.add(key, 1, timeout=None)
        return 1
    try:
        return int(version)
    except (TypeError, ValueError):
        return 1


def _bump_version(key: str) -> None:
    try:
        cache.incr(key)
    except ValueError:
        # incr raises ValueError when the key is missing (evicted or never set).
        cache.set(key, _get_version(key) + 1, timeout=None)


def my_bookings_cache_key(user_id: int) -> str:
    version = _get_version(MY_BOOKINGS_VERSION_KEY.format(user_id=user_id))
    return f"bookings:my:u{user_id}:v{version}"


def availability_cache_key(property_id: int) -> str:
    version = _get_version(AVAILABILITY_VERSION_KEY.format(property_id=property_id))
    return f"bookings:availability:p{property_id}:v{version}"


def invalidate_my_bookings_for_users(user_ids: Iterable[int | None]) -> None:
    unique_ids: Set[int] = set()
    for user_id in user_ids:
        if user_id:
            unique_ids.add(int(user_id))
    for user_id in unique_ids:
        _bump_version(MY_BOOKINGS_VERSION_KEY.format(user_id=user_id))


def invalidate_availability(property_id: int | None) -> None:
    if property_id:
        _bump_version(AVAILABILITY_VERSION_KEY.format(property_id=int(property_id)))


def my_bookings_cache_timeout() -> int:
    return getattr(settings, "CACHE_TTL_MY_BOOKINGS", 120)


def availability_cache_timeout() -> int:
    return getattr(settings, "CACHE_TTL_AVAILABILITY", 300)

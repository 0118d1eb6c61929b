from __future__ import annotations

from django.db import DatabaseError, connection
from django.http import JsonResponse


def healthz(_request):
    """Liveness plus a cheap database round-trip."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError:
        return JsonResponse({"status": "degraded", "database": "unavailable"}, status=503)
    return JsonResponse({"status": "ok"})

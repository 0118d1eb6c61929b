from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "property",
        "profile",
        "check_in",
        "check_out",
        "order_total_cents",
        "payment_status",
        "paid_at",
    )
    list_filter = ("payment_status",)
    search_fields = ("property__name", "profile__username", "stripe_session_id")
    # The paid flag only moves through payments.confirmation.
    readonly_fields = ("payment_status", "paid_at", "stripe_session_id", "totals")

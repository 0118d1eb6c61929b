import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("properties", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("check_in", models.DateField()),
                (
                    "check_out",
                    models.DateField(
                        help_text="Checkout date (exclusive), must be after check_in."
                    ),
                ),
                ("total_nights", models.PositiveIntegerField()),
                (
                    "order_total_cents",
                    models.PositiveIntegerField(
                        help_text="Locked at creation from the property's price at that moment."
                    ),
                ),
                ("totals", models.JSONField(blank=True, default=dict)),
                ("payment_status", models.BooleanField(default=False)),
                ("stripe_session_id", models.CharField(blank=True, default="", max_length=255)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "profile",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "property",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings",
                        to="properties.property",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["property", "payment_status", "check_in", "check_out"],
                        name="booking_prop_paid_dates_idx",
                    ),
                    models.Index(
                        fields=["profile", "payment_status"], name="booking_profile_paid_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("check_out__gt", models.F("check_in"))),
                        name="booking_check_out_after_check_in",
                    )
                ],
            },
        ),
    ]

from django.conf import settings
from django.db import models


class Favorite(models.Model):
    property = models.ForeignKey(
        "properties.Property",
        on_delete=models.CASCADE,
        related_name="favorites",
    )
    profile = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="favorites",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["property", "profile"],
                name="unique_favorite_per_property_profile",
            )
        ]

    def __str__(self) -> str:
        return f"Favorite {self.property_id} by {self.profile_id}"

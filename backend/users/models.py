from __future__ import annotations

from urllib.parse import quote_plus

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Guest/host profile. Every booking, property, review and favorite hangs off it."""

    profile_image_url = models.URLField(
        max_length=1024,
        blank=True,
        default="",
        help_text="Optional externally hosted profile photo.",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def _avatar_placeholder_seed(self) -> str:
        base_seed = (self.get_full_name() or self.username or f"user-{self.pk or 'anon'}").strip()
        if not base_seed:
            base_seed = f"user-{self.pk or 'anon'}"
        return base_seed

    @property
    def avatar_url(self) -> str:
        """
        Return either the stored profile image or a deterministic placeholder.
        """
        if self.profile_image_url:
            return self.profile_image_url
        seed = quote_plus(self._avatar_placeholder_seed())
        return f"https://api.dicebear.com/7.x/initials/svg?seed={seed}&backgroundColor=5B8CA6"

from __future__ import annotations

from typing import Optional

from django.contrib.auth import get_user_model
from rest_framework import serializers

User = get_user_model()


class ProfileSerializer(serializers.ModelSerializer):
    """Profile details for the authenticated user."""

    avatar_url = serializers.ReadOnlyField()

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "profile_image_url",
            "avatar_url",
            "date_joined",
        ]
        read_only_fields = ("id", "username", "avatar_url", "date_joined")

    @staticmethod
    def _clean_optional_text(value: Optional[str]) -> str:
        return (value or "").strip()

    def validate_first_name(self, value: Optional[str]) -> str:
        return self._clean_optional_text(value)

    def validate_last_name(self, value: Optional[str]) -> str:
        return self._clean_optional_text(value)


from __future__ import annotations

from typing import Any

from rest_framework import serializers

from properties.models import Property

from .models import Review


class ReviewSerializer(serializers.ModelSerializer):
    author = serializers.PrimaryKeyRelatedField(read_only=True)
    property = serializers.PrimaryKeyRelatedField(queryset=Property.objects.all())

    class Meta:
        model = Review
        fields = (
            "id",
            "property",
            "author",
            "rating",
            "comment",
            "created_at",
        )
        read_only_fields = ("id", "author", "created_at")

    def validate_rating(self, value: int) -> int:
        if value < 1 or value > 5:
            raise serializers.ValidationError("Rating must be between 1 and 5.")
        return value

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            raise serializers.ValidationError("Authentication required.")

        prop = attrs["property"]
        if prop.owner_id == user.id:
            raise serializers.ValidationError("You cannot review your own property.")

        if Review.objects.filter(property=prop, author=user).exists():
            raise serializers.ValidationError("You have already reviewed this property.")

        return attrs

    def create(self, validated_data: dict[str, Any]) -> Review:
        validated_data["author"] = self.context["request"].user
        return Review.objects.create(**validated_data)


class PublicReviewSerializer(serializers.ModelSerializer):
    author_name = serializers.SerializerMethodField()
    author_avatar_url = serializers.SerializerMethodField()

    class Meta:
        model = Review
        fields = (
            "id",
            "rating",
            "comment",
            "created_at",
            "author_name",
            "author_avatar_url",
        )
        read_only_fields = fields

    def get_author_name(self, obj: Review) -> str:
        user = getattr(obj, "author", None)
        if not user:
            return "User"
        full_name = (user.first_name or "").strip()
        if full_name:
            return full_name
        return getattr(user, "username", "") or "User"

    def get_author_avatar_url(self, obj: Review) -> str:
        user = getattr(obj, "author", None)
        if not user:
            return ""
        return getattr(user, "avatar_url", "") or ""


class MyReviewSerializer(serializers.ModelSerializer):
    property_name = serializers.ReadOnlyField(source="property.name")
    property_image_url = serializers.ReadOnlyField(source="property.image_url")

    class Meta:
        model = Review
        fields = (
            "id",
            "property",
            "property_name",
            "property_image_url",
            "rating",
            "comment",
            "created_at",
        )
        read_only_fields = fields

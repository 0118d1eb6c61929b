from rest_framework import serializers

from .models import Property


class PropertySerializer(serializers.ModelSerializer):
    """Serializer for Property that enforces business rules and permissions."""

    owner = serializers.PrimaryKeyRelatedField(read_only=True)
    owner_username = serializers.ReadOnlyField(source="owner.username")
    owner_avatar_url = serializers.ReadOnlyField(source="owner.avatar_url")

    class Meta:
        model = Property
        fields = [
            "id",
            "owner",
            "owner_username",
            "owner_avatar_url",
            "name",
            "tagline",
            "category",
            "country",
            "description",
            "price",
            "guests",
            "bedrooms",
            "beds",
            "baths",
            "amenities",
            "image_url",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["owner", "created_at", "updated_at"]

    def create(self, validated_data):
        """Create a property for the authenticated user."""
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            raise serializers.ValidationError({"detail": "Authentication required."})
        validated_data["owner"] = user
        return super().create(validated_data)

    def update(self, instance, validated_data):
        """Allow updates only when performed by the owner."""
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if not user or instance.owner_id != getattr(user, "id", None):
            raise serializers.ValidationError(
                {"detail": "You do not have permission to modify this property."}
            )
        validated_data.pop("owner", None)
        return super().update(instance, validated_data)

    def validate_price(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError("Nightly price must be greater than 0.")
        if value > 10000:
            raise serializers.ValidationError("Nightly price must be less than 10000.")
        return value

    def validate_amenities(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError("Amenities must be a list of strings.")
        return [item.strip() for item in value if item.strip()]


class RentalSerializer(serializers.ModelSerializer):
    """Owner-facing property row with paid-booking aggregates."""

    total_nights_sum = serializers.IntegerField(read_only=True)
    order_total_cents_sum = serializers.IntegerField(read_only=True)
    paid_bookings_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Property
        fields = [
            "id",
            "name",
            "price",
            "total_nights_sum",
            "order_total_cents_sum",
            "paid_bookings_count",
        ]
        read_only_fields = fields

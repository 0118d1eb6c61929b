from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from rest_framework import serializers, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from properties.models import Property

from .models import Favorite

logger = logging.getLogger(__name__)


class FavoritePropertySerializer(serializers.ModelSerializer):
    class Meta:
        model = Property
        fields = ["id", "name", "tagline", "country", "price", "image_url"]
        read_only_fields = fields


class ToggleFavoriteSerializer(serializers.Serializer):
    property = serializers.PrimaryKeyRelatedField(queryset=Property.objects.all())


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def favorite_list(request):
    """Properties the caller has favorited, newest first."""
    properties = [
        fav.property
        for fav in Favorite.objects.filter(profile=request.user).select_related("property")
    ]
    return Response(FavoritePropertySerializer(properties, many=True).data)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def favorite_toggle(request):
    """Add the property to favorites, or remove it when it is already there."""
    serializer = ToggleFavoriteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    prop = serializer.validated_data["property"]

    deleted, _ = Favorite.objects.filter(profile=request.user, property=prop).delete()
    if deleted:
        return Response({"favorited": False, "detail": "Removed from Faves"})

    try:
        with transaction.atomic():
            Favorite.objects.create(profile=request.user, property=prop)
    except IntegrityError:
        # Concurrent toggle already created it.
        logger.info(
            "favorites: duplicate add ignored",
            extra={"profile_id": request.user.id, "property_id": prop.id},
        )
    return Response(
        {"favorited": True, "detail": "Added to Faves"},
        status=status.HTTP_201_CREATED,
    )

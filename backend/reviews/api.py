from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from properties.models import Property

from .models import Review, property_rating
from .serializers import MyReviewSerializer, PublicReviewSerializer, ReviewSerializer

PROPERTY_REVIEWS_LIMIT = 50


def _property_param(request) -> int | None:
    raw = request.query_params.get("property")
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


class ReviewViewSet(viewsets.GenericViewSet):
    """Public property reviews plus the author's own create/list/delete."""

    serializer_class = ReviewSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_permissions(self):
        if getattr(self, "action", None) in {"list", "rating"}:
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get_queryset(self):
        return Review.objects.select_related("author", "property")

    def list(self, request, *args, **kwargs):
        """Latest reviews of one property (``?property=<id>``)."""
        property_id = _property_param(request)
        if property_id is None:
            return Response(
                {"detail": "property query parameter is required."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        qs = self.get_queryset().filter(property_id=property_id)[:PROPERTY_REVIEWS_LIMIT]
        return Response(PublicReviewSerializer(qs, many=True).data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None, *args, **kwargs):
        review = get_object_or_404(Review, pk=pk, author=request.user)
        review.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="mine")
    def mine(self, request, *args, **kwargs):
        qs = self.get_queryset().filter(author=request.user)
        return Response(MyReviewSerializer(qs, many=True).data)

    @action(detail=False, methods=["get"], url_path="rating")
    def rating(self, request, *args, **kwargs):
        property_id = _property_param(request)
        if property_id is None:
            return Response(
                {"detail": "property query parameter is required."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        prop = get_object_or_404(Property, pk=property_id)
        return Response(property_rating(prop.pk))

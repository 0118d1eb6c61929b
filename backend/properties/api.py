from rest_framework import permissions, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import Property
from .serializers import PropertySerializer, RentalSerializer
from .services import rentals_with_stats


class PropertyPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100


class IsOwnerOrReadOnly(permissions.BasePermission):
    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return getattr(obj, "owner_id", None) == getattr(request.user, "id", None)


class PropertyViewSet(viewsets.ModelViewSet):
    queryset = Property.objects.select_related("owner")
    serializer_class = PropertySerializer
    pagination_class = PropertyPagination
    permission_classes = [
        permissions.IsAuthenticatedOrReadOnly,
        IsOwnerOrReadOnly,
    ]

    def get_permissions(self):
        if getattr(self, "action", None) in {"list", "retrieve"}:
            return [permissions.AllowAny()]
        return [permission() for permission in self.permission_classes]

    def perform_authentication(self, request):
        """Downgrade to anonymous user when public actions receive invalid tokens."""
        try:
            return super().perform_authentication(request)
        except AuthenticationFailed:
            if getattr(self, "action", None) in {"list", "retrieve"}:
                request._not_authenticated()
                return
            raise

    @action(
        detail=False,
        methods=["get"],
        url_path="rentals",
        permission_classes=[IsAuthenticated],
    )
    def rentals(self, request):
        """Return the authenticated owner's properties with nights/revenue totals."""
        qs = rentals_with_stats(request.user.id)
        serializer = RentalSerializer(qs, many=True)
        return Response(serializer.data)

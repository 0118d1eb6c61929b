from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api import PropertyViewSet

router = DefaultRouter()
router.register("", PropertyViewSet, basename="property")

urlpatterns = [
    path("", include(router.urls)),
]

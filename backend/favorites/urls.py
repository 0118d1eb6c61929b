from django.urls import path

from .api import favorite_list, favorite_toggle

urlpatterns = [
    path("", favorite_list, name="favorite_list"),
    path("toggle/", favorite_toggle, name="favorite_toggle"),
]

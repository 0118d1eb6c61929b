from django.contrib import admin

from .models import Property


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "owner", "price", "country", "created_at")
    search_fields = ("name", "owner__username")

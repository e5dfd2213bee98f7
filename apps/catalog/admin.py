# apps/catalog/admin.py
from django.contrib import admin
from .models import Flavor


@admin.register(Flavor)
class FlavorAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "available_quantity", "updated_at")
    search_fields = ("name", "description")
    ordering = ("name",)
    # Stock changes go through InventoryService so they land in the movement log
    readonly_fields = ("available_quantity", "created_at", "updated_at")

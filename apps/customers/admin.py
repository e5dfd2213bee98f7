from django.contrib import admin
from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'is_volunteer', 'created_at')
    list_filter = ('is_volunteer',)
    search_fields = ('name',)

from django.contrib import admin
from .models import DailyReportSnapshot


@admin.register(DailyReportSnapshot)
class DailyReportSnapshotAdmin(admin.ModelAdmin):
    list_display = ('date', 'total_orders', 'total_items', 'total_revenue', 'average_ticket')
    date_hierarchy = 'date'
    readonly_fields = ('created_at', 'updated_at')

# apps/reports/models.py
from decimal import Decimal
from django.db import models


class DailyReportSnapshot(models.Model):
    """
    Headline figures of one UTC day, persisted by the nightly task.
    The full report is always recomputable from orders; this is the archive.
    """
    date = models.DateField(unique=True)

    total_orders = models.PositiveIntegerField(default=0)
    total_items = models.PositiveIntegerField(default=0)
    total_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    average_ticket = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    average_order_completion_seconds = models.FloatField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "daily_report_snapshots"
        ordering = ["-date"]

    def __str__(self):
        return f"DailyReport({self.date})"

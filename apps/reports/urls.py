# apps/reports/urls.py
from django.urls import path

from .views import DailyReportView, DailyReportSnapshotListView

urlpatterns = [
    path("daily/", DailyReportView.as_view(), name="reports-daily"),
    path("snapshots/", DailyReportSnapshotListView.as_view(), name="reports-snapshots"),
]

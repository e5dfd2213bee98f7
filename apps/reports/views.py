# apps/reports/views.py
from datetime import datetime, timezone as dt_timezone

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import DailyReportSnapshot
from .serializers import (
    DailyReportQuerySerializer,
    DailyReportSerializer,
    DailyReportSnapshotSerializer,
)
from .services import compute_daily_summary


class DailyReportView(APIView):
    """
    GET /api/v1/reports/daily/?date=YYYY-MM-DD (default: today, UTC)
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        query = DailyReportQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        day = query.validated_data.get("date") or datetime.now(dt_timezone.utc).date()
        return Response(DailyReportSerializer(compute_daily_summary(day)).data)


class DailyReportSnapshotListView(generics.ListAPIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = DailyReportSnapshotSerializer
    queryset = DailyReportSnapshot.objects.all().order_by("-date")
    filter_backends = [DjangoFilterBackend]
    filterset_fields = {"date": ["exact", "gte", "lte"]}

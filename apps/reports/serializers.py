# apps/reports/serializers.py
from rest_framework import serializers
from .models import DailyReportSnapshot


class DailyReportQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


class PopularFlavorSerializer(serializers.Serializer):
    flavor_id = serializers.UUIDField()
    flavor_name = serializers.CharField()
    quantity = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)


class HourlyOrderCountSerializer(serializers.Serializer):
    hour = serializers.IntegerField()
    count = serializers.IntegerField()


class StepDurationSerializer(serializers.Serializer):
    status = serializers.CharField()
    average_seconds = serializers.FloatField()
    fastest_seconds = serializers.FloatField()
    slowest_seconds = serializers.FloatField()


class DailyReportSerializer(serializers.Serializer):
    date = serializers.DateField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_orders = serializers.IntegerField()
    total_items = serializers.IntegerField()
    average_ticket = serializers.DecimalField(max_digits=14, decimal_places=2)
    average_order_completion_seconds = serializers.FloatField(allow_null=True)
    popular_flavors = PopularFlavorSerializer(many=True)
    hourly_order_counts = HourlyOrderCountSerializer(many=True)
    step_duration_stats = StepDurationSerializer(many=True)


class DailyReportSnapshotSerializer(serializers.ModelSerializer):
    class Meta:
        model = DailyReportSnapshot
        fields = "__all__"

from django.conf import settings
from rest_framework import serializers

from .models import OrderItem, OrderItemStatus


# --- Input ---

class OrderItemRequestSerializer(serializers.Serializer):
    flavor_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    notes = serializers.CharField(max_length=256, required=False, allow_blank=True, allow_null=True)

    def validate_quantity(self, value):
        limit = settings.ORDER_MAX_ITEM_QUANTITY
        if value > limit:
            raise serializers.ValidationError(f"Ensure this value is less than or equal to {limit}.")
        return value


class CreateOrderSerializer(serializers.Serializer):
    """
    customer_id omitted -> a new customer is created with customer_name.
    Empty item lists and blank names are left to the service so the caller
    gets the structured error codes.
    """
    customer_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    customer_name = serializers.CharField(max_length=120, allow_blank=True, trim_whitespace=False)
    items = OrderItemRequestSerializer(many=True)


class AdvanceOrderItemSerializer(serializers.Serializer):
    target_status = serializers.ChoiceField(choices=OrderItemStatus.choices, required=False, allow_null=True)


class CancelOrderSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField(min_value=1)


# --- Output ---

class OrderItemSummarySerializer(serializers.ModelSerializer):
    item_id = serializers.UUIDField(source="id", read_only=True)
    flavor_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = OrderItem
        fields = ["item_id", "flavor_id", "quantity", "status", "unit_price"]


class OrderCreatedSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    customer_id = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    items = OrderItemSummarySerializer(many=True)


class StatusSnapshotSerializer(serializers.Serializer):
    status = serializers.CharField()
    changed_at = serializers.DateTimeField()


class ActiveOrderItemSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    flavor_id = serializers.UUIDField()
    flavor_name = serializers.CharField()
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    status = serializers.CharField()
    created_at = serializers.DateTimeField()
    last_updated_at = serializers.DateTimeField(allow_null=True)


class OrderItemWithHistorySerializer(ActiveOrderItemSerializer):
    history = StatusSnapshotSerializer(many=True)


class ActiveOrderSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    created_at = serializers.DateTimeField()
    total_amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    items = ActiveOrderItemSerializer(many=True)


class CustomerOrderSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    created_at = serializers.DateTimeField()
    total_amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    is_cancelable = serializers.BooleanField()
    items = OrderItemWithHistorySerializer(many=True)


class HistoryOrderSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    created_at = serializers.DateTimeField()
    total_amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    items = OrderItemWithHistorySerializer(many=True)


class ActiveOrderGroupSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    customer_name = serializers.CharField()
    orders = ActiveOrderSerializer(many=True)


class HistoryOrderGroupSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    customer_name = serializers.CharField()
    orders = HistoryOrderSerializer(many=True)

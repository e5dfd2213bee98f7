from rest_framework import serializers
from .models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ["id", "name", "created_at"]


class RegisterCustomerSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120, allow_blank=True, trim_whitespace=False)


class ConfirmCustomerSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField(min_value=1)
    name = serializers.CharField(max_length=120, allow_blank=True, trim_whitespace=False)

# apps/catalog/serializers.py
from decimal import Decimal

from rest_framework import serializers
from .models import Flavor


class FlavorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Flavor
        fields = [
            "id",
            "name",
            "description",
            "image_url",
            "available_quantity",
            "price",
        ]


class FlavorWriteSerializer(serializers.Serializer):
    """
    Input for create / update. Name emptiness is checked by the service
    so the caller gets the structured FlavorNameRequired error.
    """
    name = serializers.CharField(max_length=80, allow_blank=True, trim_whitespace=False)
    description = serializers.CharField(max_length=256, required=False, allow_blank=True, allow_null=True)
    image_url = serializers.CharField(max_length=256, required=False, allow_blank=True, allow_null=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0.00"))


class FlavorCreateSerializer(FlavorWriteSerializer):
    available_quantity = serializers.IntegerField(min_value=0, max_value=100000, default=0)


class FlavorBatchSerializer(serializers.Serializer):
    flavors = FlavorCreateSerializer(many=True)


class FlavorInventorySerializer(serializers.Serializer):
    available_quantity = serializers.IntegerField(min_value=0, max_value=100000)

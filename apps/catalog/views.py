from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.utils.exceptions import BusinessLogicException, ErrorCodes

from .serializers import (
    FlavorSerializer,
    FlavorCreateSerializer,
    FlavorWriteSerializer,
    FlavorBatchSerializer,
    FlavorInventorySerializer,
)
from .services import FlavorService


class FlavorViewSet(viewsets.ViewSet):
    """
    GET    /api/v1/flavors/                 -> menu with stock and price
    POST   /api/v1/flavors/                 -> create or top up by name
    POST   /api/v1/flavors/batch/           -> batch create / top up
    PUT    /api/v1/flavors/{id}/            -> edit name, description, image, price
    PATCH  /api/v1/flavors/{id}/inventory/  -> set available quantity
    DELETE /api/v1/flavors/{id}/            -> only when no order references it
    """
    permission_classes = [AllowAny]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def list(self, request):
        flavors = FlavorService.list_flavors()
        return Response(FlavorSerializer(flavors, many=True).data)

    def create(self, request):
        serializer = FlavorCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = FlavorService.create_flavor(**serializer.validated_data)
        if not result.succeeded:
            raise BusinessLogicException.from_result(result)

        return Response(FlavorSerializer(result.value).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"])
    def batch(self, request):
        serializer = FlavorBatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = FlavorService.create_flavors_batch(serializer.validated_data["flavors"])
        if not result.succeeded:
            raise BusinessLogicException.from_result(result)

        return Response(FlavorSerializer(result.value, many=True).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        serializer = FlavorWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = FlavorService.update_flavor(pk, **serializer.validated_data)
        if not result.succeeded:
            raise BusinessLogicException.from_result(result, not_found_codes=[ErrorCodes.FLAVOR_NOT_FOUND])

        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["patch"])
    def inventory(self, request, pk=None):
        serializer = FlavorInventorySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = FlavorService.update_inventory(pk, serializer.validated_data["available_quantity"])
        if not result.succeeded:
            raise BusinessLogicException.from_result(result, not_found_codes=[ErrorCodes.FLAVOR_NOT_FOUND])

        return Response(status=status.HTTP_204_NO_CONTENT)

    def destroy(self, request, pk=None):
        result = FlavorService.delete_flavor(pk)
        if not result.succeeded:
            raise BusinessLogicException.from_result(result, not_found_codes=[ErrorCodes.FLAVOR_NOT_FOUND])

        return Response(status=status.HTTP_204_NO_CONTENT)

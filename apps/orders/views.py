from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.utils.exceptions import BusinessLogicException, ErrorCodes

from . import selectors
from .serializers import (
    CreateOrderSerializer,
    AdvanceOrderItemSerializer,
    CancelOrderSerializer,
    OrderCreatedSerializer,
    ActiveOrderItemSerializer,
    ActiveOrderGroupSerializer,
    CustomerOrderSerializer,
    HistoryOrderGroupSerializer,
)
from .services import OrderService


class OrderViewSet(viewsets.ViewSet):
    """
    POST /api/v1/orders/                                   -> place an order
    GET  /api/v1/orders/active/?search=                    -> kitchen board
    POST /api/v1/orders/{id}/items/{item_id}/advance/      -> next kitchen step
    GET  /api/v1/orders/customer/{customer_id}/            -> customer's own orders
    POST /api/v1/orders/{id}/cancel/                       -> cancel while all PENDING
    GET  /api/v1/orders/history/?search=                   -> finished orders
    """
    permission_classes = [AllowAny]
    lookup_value_regex = r"\d+"

    def create(self, request):
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = OrderService.create_order(
            customer_name=data["customer_name"],
            items=data["items"],
            customer_id=data.get("customer_id"),
        )
        if not result.succeeded:
            raise BusinessLogicException.from_result(
                result,
                not_found_codes=[ErrorCodes.CUSTOMER_NOT_FOUND, ErrorCodes.FLAVOR_NOT_FOUND],
            )

        return Response(OrderCreatedSerializer(result.value).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def active(self, request):
        groups = selectors.get_active_orders(request.query_params.get("search"))
        return Response(ActiveOrderGroupSerializer(groups, many=True).data)

    @action(detail=False, methods=["get"])
    def history(self, request):
        groups = selectors.get_order_history(request.query_params.get("search"))
        return Response(HistoryOrderGroupSerializer(groups, many=True).data)

    @action(detail=False, methods=["get"], url_path=r"customer/(?P<customer_id>\d+)")
    def customer(self, request, customer_id=None):
        orders = selectors.get_customer_orders(int(customer_id))
        return Response(CustomerOrderSerializer(orders, many=True).data)

    @action(detail=True, methods=["post"], url_path=r"items/(?P<item_id>[0-9a-fA-F-]{36})/advance")
    def advance(self, request, pk=None, item_id=None):
        serializer = AdvanceOrderItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = OrderService.advance_order_item_status(
            int(pk), item_id, serializer.validated_data.get("target_status")
        )
        if not result.succeeded:
            raise BusinessLogicException.from_result(
                result,
                not_found_codes=[ErrorCodes.ORDER_NOT_FOUND, ErrorCodes.ORDER_ITEM_NOT_FOUND],
            )

        return Response(ActiveOrderItemSerializer(selectors.item_view(result.value)).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = OrderService.cancel_order(int(pk), serializer.validated_data["customer_id"])
        if not result.succeeded:
            raise BusinessLogicException.from_result(result, not_found_codes=[ErrorCodes.ORDER_NOT_FOUND])

        return Response(status=status.HTTP_204_NO_CONTENT)

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.utils.exceptions import BusinessLogicException, ErrorCodes
from apps.utils.results import OperationError

from .serializers import CustomerSerializer, RegisterCustomerSerializer, ConfirmCustomerSerializer
from .services import CustomerService


class CustomerViewSet(viewsets.ViewSet):
    """
    POST /api/v1/customers/register/  -> new confirmed customer
    GET  /api/v1/customers/{id}/      -> lookup (volunteer records are hidden)
    POST /api/v1/customers/confirm/   -> identity check by id + name
    """
    permission_classes = [AllowAny]
    lookup_value_regex = r"\d+"

    @action(detail=False, methods=["post"])
    def register(self, request):
        serializer = RegisterCustomerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = CustomerService.register_customer(serializer.validated_data["name"])
        if not result.succeeded:
            raise BusinessLogicException.from_result(result)

        return Response(CustomerSerializer(result.value).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        customer = CustomerService.get_customer(int(pk))
        if customer is None:
            raise BusinessLogicException(
                [OperationError(ErrorCodes.CUSTOMER_NOT_FOUND, "customer_id")],
                http_status=status.HTTP_404_NOT_FOUND,
            )
        return Response(CustomerSerializer(customer).data)

    @action(detail=False, methods=["post"])
    def confirm(self, request):
        serializer = ConfirmCustomerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = CustomerService.confirm_customer(**serializer.validated_data)
        if not result.succeeded:
            raise BusinessLogicException.from_result(result, not_found_codes=[ErrorCodes.CUSTOMER_NOT_FOUND])

        return Response(CustomerSerializer(result.value).data)

from django.conf import settings
from django.utils import timezone
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import ServerInfoSerializer


class ServerInfoView(APIView):
    """
    GET /api/v1/utils/info/ -> build and clock info for the kiosk and kitchen screens
    """
    permission_classes = [AllowAny]

    def get(self, request):
        info = {
            "app_name": settings.PROJECT_NAME,
            "version": settings.PROJECT_VERSION,
            "debug": settings.DEBUG,
            "server_time": timezone.now(),
            "max_item_quantity": settings.ORDER_MAX_ITEM_QUANTITY,
        }
        return Response(ServerInfoSerializer(info).data)

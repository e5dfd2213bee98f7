from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import FlavorViewSet

router = DefaultRouter()
router.register(r"flavors", FlavorViewSet, basename="flavor")

urlpatterns = [
    path("", include(router.urls)),
]

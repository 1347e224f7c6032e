from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import PropertyViewSet

# The API index lives at /api/, so no DefaultRouter root view here
router = SimpleRouter()
router.register(r"", PropertyViewSet, basename="property")

urlpatterns = [
    path("", include(router.urls)),
]

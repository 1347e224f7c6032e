from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from rest_framework_simplejwt.views import TokenRefreshView
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView
from properties.views import ForwardGeocodeView, ReverseGeocodeView
from .views import api_root

urlpatterns = [
    # JSON index of the API
    path("", api_root, name="home"),
    path("api/", api_root, name="api-root"),

    # Admin
    path("admin/", admin.site.urls),

    # Auth (JWT refresh; login/logout live in accounts)
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),

    # DRF browsable API login/logout
    path("api-auth/", include("rest_framework.urls")),

    # Apps
    path("api/accounts/", include("accounts.urls")),
    path("api/properties/", include("properties.urls")),
    path("api/bookings/", include("bookings.urls")),
    path("api/chats/", include("chats.urls")),
    path("api/notifications/", include("notifications.urls")),

    # Geocoding utilities
    path("api/utils/geocode/reverse/", ReverseGeocodeView.as_view(), name="utils-geocode-reverse"),
    path("api/utils/geocode/forward/", ForwardGeocodeView.as_view(), name="utils-geocode-forward"),

    # OpenAPI schema + Swagger UI + Redoc
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

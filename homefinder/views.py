from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.reverse import reverse


@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request, format=None):
    return Response({
        "accounts": reverse("accounts-root", request=request, format=format),
        "token_refresh": reverse("token_refresh", request=request, format=format),
        "properties": reverse("property-list", request=request, format=format),
        "properties_with_availability": reverse("property-with-availability", request=request, format=format),
        "bookings": reverse("booking-list", request=request, format=format),
        "chats": reverse("chat-list", request=request, format=format),
        "notifications_stream": reverse("notifications-stream", request=request, format=format),
        "geocode_reverse": reverse("utils-geocode-reverse", request=request, format=format),
        "geocode_forward": reverse("utils-geocode-forward", request=request, format=format),
        "schema": reverse("schema", request=request, format=format),
        "swagger_ui": reverse("swagger-ui", request=request, format=format),
        "redoc": reverse("redoc", request=request, format=format),
    })

import logging
import json
import time
from django.utils.deprecation import MiddlewareMixin

from .services import get_services

requests_logger = logging.getLogger("requests")
fallback_logger = logging.getLogger(__name__)

REDACTED_QUERY_PARAMS = ("token",)

SENSITIVE_PATHS = (
    "/api/token/",
    "/api/accounts/register/",
    "/api/accounts/login/",
    "/api/accounts/verify-email-otp/",
    "/api/accounts/forgot-password/",
    "/api/accounts/update-password/",
)


def redacted_query(request):
    """Query string with access tokens masked."""
    if not any(name in request.GET for name in REDACTED_QUERY_PARAMS):
        return request.META.get("QUERY_STRING", "")
    params = request.GET.copy()
    for name in REDACTED_QUERY_PARAMS:
        if name in params:
            params.setlist(name, ["redacted"])
    return params.urlencode()


class ServicesMiddleware:
    """
    Attaches the process-wide ServiceRegistry to every request as ``request.services``.
    The registry is resolved once, when the handler loads its middleware chain.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.services = get_services()

    def __call__(self, request):
        request.services = self.services
        return self.get_response(request)


class RequestLogMiddleware(MiddlewareMixin):
    """
    Logs incoming requests and responses:
    - method, path, status, user, duration, query string
    - does not log body and tokens, short form for auth endpoints
    """

    def process_request(self, request):
        request._start_time = time.time()

    def process_response(self, request, response):
        try:
            start = getattr(request, "_start_time", None)
            duration_ms = int((time.time() - start) * 1000) if start else None

            path = request.path

            # Skip statics/admin and other uninteresting paths
            if path.startswith("/static/") or path.startswith("/admin/") or path.startswith("/media/"):
                return response

            is_sensitive = path.startswith(SENSITIVE_PATHS)

            user_id = getattr(getattr(request, "user", None), "id", None)
            user_repr = f"user_id={user_id}" if user_id else "anon"
            status = getattr(response, "status_code", "-")

            if is_sensitive:
                requests_logger.info(
                    "HTTP %s %s -> %s [%s] %sms",
                    request.method,
                    path,
                    status,
                    user_repr,
                    duration_ms if duration_ms is not None else "-",
                )
            else:
                payload = {
                    "method": request.method,
                    "path": path,
                    "status": status,
                    "user": user_repr,
                    "duration_ms": duration_ms,
                    "query": redacted_query(request),
                }
                requests_logger.info(json.dumps(payload, ensure_ascii=False))
        except Exception as e:
            # Never break a response due to logging
            fallback_logger.warning("Failed to log request/response: %s", e)
        return response

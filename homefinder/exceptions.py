"""
Structured API errors.

Every error leaves the API as ``{"kind": ..., "detail": ...}``; validation
errors also carry ``"errors"`` with the per-field messages. Anything DRF does
not recognise is logged and answered with an opaque 500.
"""
import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class Conflict(exceptions.APIException):
    """Overlapping booking, duplicate key, property not bookable."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state of the resource."
    default_code = "conflict"


class UpstreamError(exceptions.APIException):
    """A third-party dependency that *is* the request (e.g. geocoding) failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service failed."
    default_code = "upstream"


KIND_BY_STATUS = {
    400: "validation",
    401: "authentication",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    406: "not_acceptable",
    409: "conflict",
    415: "unsupported_media_type",
    429: "throttled",
    502: "upstream",
}


def _first_message(value):
    if isinstance(value, (list, tuple)):
        return _first_message(value[0]) if value else ""
    if isinstance(value, dict):
        return _first_message(next(iter(value.values()))) if value else ""
    return str(value)


def _validation_payload(data):
    if isinstance(data, dict):
        fields = [name for name in data if name != "non_field_errors"]
        if fields:
            detail = "Invalid input: " + ", ".join(fields) + "."
        else:
            detail = _first_message(data.get("non_field_errors", "Invalid input."))
        return {"kind": "validation", "detail": detail, "errors": data}
    if isinstance(data, list):
        return {"kind": "validation", "detail": _first_message(data), "errors": {"non_field_errors": data}}
    return {"kind": "validation", "detail": str(data), "errors": {}}


def structured_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled error in %s: %s",
            type(view).__name__ if view is not None else "unknown view",
            exc,
        )
        return Response(
            {"kind": "server_error", "detail": "Internal server error."},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        response.data = _validation_payload(response.data)
        return response

    kind = KIND_BY_STATUS.get(response.status_code, "error")
    data = response.data
    detail = data.get("detail", _first_message(data)) if isinstance(data, dict) else _first_message(data)
    response.data = {"kind": kind, "detail": str(detail)}
    return response

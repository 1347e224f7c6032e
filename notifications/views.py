import json
import logging

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.http import StreamingHttpResponse
from rest_framework import permissions, renderers
from rest_framework.exceptions import NotFound
from rest_framework.views import APIView

from .authentication import QueryParamJWTAuthentication

logger = logging.getLogger(__name__)


class EventStreamRenderer(renderers.BaseRenderer):
    """Lets clients send ``Accept: text/event-stream``; errors still go out as JSON text."""
    media_type = "text/event-stream"
    format = "event-stream"
    charset = "utf-8"

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b""
        return json.dumps(data, cls=DjangoJSONEncoder).encode(self.charset)


def sse_frame(payload):
    event = payload.get("event", "message")
    data = json.dumps(payload, cls=DjangoJSONEncoder)
    return f"event: {event}\ndata: {data}\n\n"


def event_stream(notifier, subscription, keepalive):
    try:
        yield ": connected\n\n"
        while True:
            payload = subscription.get(timeout=keepalive)
            if payload is None:
                yield ": keep-alive\n\n"
                continue
            yield sse_frame(payload)
    finally:
        notifier.unsubscribe(subscription)


class EventStreamView(APIView):
    """
    GET /api/notifications/stream/

    Server-sent events for the authenticated user. Every open stream is its
    own session and receives each event once (``receive_message`` for chat
    messages); comment lines keep idle connections alive.
    The access token goes in the Authorization header or in ``?token=``.
    """
    authentication_classes = [QueryParamJWTAuthentication]
    permission_classes = [permissions.IsAuthenticated]
    renderer_classes = [renderers.JSONRenderer, EventStreamRenderer]

    def get(self, request):
        notifier = request.services.notifier
        if not hasattr(notifier, "subscribe"):
            raise NotFound("Realtime stream is not enabled.")

        subscription = notifier.subscribe(request.user.id)
        logger.info("Event stream opened user_id=%s session=%s", request.user.id, subscription.session_id)

        stream = event_stream(notifier, subscription, settings.HOMEFINDER_STREAM_KEEPALIVE)
        resp = StreamingHttpResponse(stream, content_type="text/event-stream")
        resp["Cache-Control"] = "no-cache"
        resp["X-Accel-Buffering"] = "no"
        return resp

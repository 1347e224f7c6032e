from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from rest_framework import decorators, mixins, permissions, response, status, viewsets
from rest_framework.exceptions import NotFound

from properties.models import Property
from .models import Chat
from .serializers import (
    ChatCreateSerializer,
    ChatPageSerializer,
    ChatSerializer,
    MarkReadSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    TypingSerializer,
)
from . import services

User = get_user_model()


class ChatViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    GET    /api/chats/                 my chats, most recent first
    POST   /api/chats/                 {"recipient_id", "property_id"} create or get
    GET    /api/chats/{id}/?page&limit chat + one page of messages (marks them read)
    POST   /api/chats/{id}/messages/   {"content"}
    PUT    /api/chats/{id}/read/       {"message_id"?}
    POST   /api/chats/{id}/typing/     {"is_typing"} relayed to the other participant
    GET    /api/chats/unread-count/
    """
    serializer_class = ChatSerializer
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"
    filter_backends = []

    def get_queryset(self):
        user = self.request.user
        return (
            Chat.objects
            .filter(participants=user)
            .select_related("property")
            .prefetch_related("participants")
            .annotate(unread=Count(
                "messages",
                filter=Q(messages__recipient=user, messages__is_read=False),
                distinct=True,
            ))
            .order_by("-updated_at")
        )

    def create(self, request):
        ser = ChatCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            recipient = User.objects.get(pk=ser.validated_data["recipient_id"])
        except User.DoesNotExist:
            raise NotFound("Recipient not found.")

        prop = None
        property_id = ser.validated_data.get("property_id")
        if property_id is not None:
            try:
                prop = Property.objects.get(pk=property_id)
            except Property.DoesNotExist:
                raise NotFound("Property not found.")

        chat, created = services.get_or_create_chat(request.user, recipient, prop)
        data = self.get_serializer(chat).data
        return response.Response(data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    def retrieve(self, request, pk=None):
        chat = services.get_chat_for(pk, request.user)
        page_ser = ChatPageSerializer(data=request.query_params)
        page_ser.is_valid(raise_exception=True)
        page, limit = page_ser.validated_data["page"], page_ser.validated_data["limit"]

        messages, total = services.chat_messages(chat, request.user, page=page, limit=limit)
        return response.Response({
            "chat": self.get_serializer(chat).data,
            "messages": MessageSerializer(messages, many=True).data,
            "pagination": {"page": page, "limit": limit, "total": total},
        })

    @decorators.action(detail=True, methods=["post"])
    def messages(self, request, pk=None):
        chat = services.get_chat_for(pk, request.user)
        ser = MessageCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        message = services.send_message(
            chat.id,
            request.user,
            ser.validated_data["content"],
            notifier=request.services.notifier,
        )
        return response.Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)

    @decorators.action(detail=True, methods=["put"])
    def read(self, request, pk=None):
        chat = services.get_chat_for(pk, request.user)
        ser = MarkReadSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        updated = services.mark_read(chat, request.user, ser.validated_data.get("message_id"))
        return response.Response({"updated_count": updated})

    @decorators.action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        return response.Response({"unread_count": services.unread_count(request.user)})

    @decorators.action(detail=True, methods=["post"])
    def typing(self, request, pk=None):
        ser = TypingSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        services.send_typing(
            pk,
            request.user,
            ser.validated_data["is_typing"],
            notifier=request.services.notifier,
        )
        return response.Response(status=status.HTTP_204_NO_CONTENT)

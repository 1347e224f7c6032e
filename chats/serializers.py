from rest_framework import serializers

from accounts.serializers import UserSerializer
from .models import Chat, Message


class ParticipantSerializer(UserSerializer):
    class Meta(UserSerializer.Meta):
        fields = ["id", "name", "email"]
        read_only_fields = fields


class MessageSerializer(serializers.ModelSerializer):
    sender = ParticipantSerializer(read_only=True)
    recipient = ParticipantSerializer(read_only=True)

    class Meta:
        model = Message
        fields = ["id", "chat", "sender", "recipient", "content", "is_read", "created_at"]
        read_only_fields = ["id", "chat", "sender", "recipient", "is_read", "created_at"]


class ChatSerializer(serializers.ModelSerializer):
    participants = ParticipantSerializer(many=True, read_only=True)
    property_title = serializers.CharField(source="property.title", read_only=True, default=None)
    other_participant = serializers.SerializerMethodField()
    unread_count = serializers.SerializerMethodField()

    class Meta:
        model = Chat
        fields = [
            "id", "participants", "property", "property_title",
            "other_participant", "unread_count", "created_at", "updated_at",
        ]
        read_only_fields = fields

    def _viewer(self):
        request = self.context.get("request")
        return getattr(request, "user", None)

    def get_other_participant(self, obj):
        viewer = self._viewer()
        if viewer is None:
            return None
        other = obj.other_participant(viewer)
        if other is None:
            return None
        data = ParticipantSerializer(other).data
        data["is_owner"] = bool(obj.property and obj.property.owner_id == other.id)
        return data

    def get_unread_count(self, obj):
        # annotated by the list queryset; computed otherwise
        if hasattr(obj, "unread"):
            return obj.unread
        viewer = self._viewer()
        if viewer is None:
            return 0
        return obj.messages.filter(recipient=viewer, is_read=False).count()


class ChatCreateSerializer(serializers.Serializer):
    recipient_id = serializers.IntegerField()
    property_id = serializers.IntegerField(required=False, allow_null=True)


class MessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=2000, trim_whitespace=True)


class MarkReadSerializer(serializers.Serializer):
    message_id = serializers.IntegerField(required=False, allow_null=True)


class ChatPageSerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=200, required=False, default=50)


class TypingSerializer(serializers.Serializer):
    is_typing = serializers.BooleanField(default=True)

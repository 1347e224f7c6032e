from django.conf import settings
from django.db import models


class Chat(models.Model):
    """Conversation between two users, optionally about a property."""

    participants = models.ManyToManyField(settings.AUTH_USER_MODEL, related_name="chats")
    property = models.ForeignKey(
        "properties.Property",
        on_delete=models.CASCADE,
        related_name="chats",
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]

    def __str__(self):
        return f"Chat #{self.id} property={self.property_id}"

    def other_participant(self, user):
        for participant in self.participants.all():
            if participant.id != user.id:
                return participant
        return None

    def has_participant(self, user):
        return any(p.id == user.id for p in self.participants.all())


class Message(models.Model):
    chat = models.ForeignKey(Chat, on_delete=models.CASCADE, related_name="messages")
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="sent_messages")
    recipient = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="received_messages")
    content = models.TextField(max_length=2000)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="message_recipient_read_idx"),
            models.Index(fields=["chat", "-created_at"], name="message_chat_created_idx"),
        ]

    def __str__(self):
        return f"Msg chat#{self.chat_id} from {self.sender_id} to {self.recipient_id}"

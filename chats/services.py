"""
Chat relay: one conversation per participant pair and property, persisted
messages, read tracking and a best-effort realtime push of every new message.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from .models import Chat, Message

User = get_user_model()
logger = logging.getLogger(__name__)

RECEIVE_MESSAGE = "receive_message"
TYPING = "typing"
STOP_TYPING = "stop_typing"
MAX_CONTENT_LENGTH = 2000


def find_chat(user_a, user_b, property=None):
    """The chat whose participants are exactly {user_a, user_b} about ``property``."""
    wanted = {user_a.id, user_b.id}
    candidates = (
        Chat.objects
        .filter(property=property)
        .filter(participants=user_a)
        .filter(participants=user_b)
        .prefetch_related("participants")
        .order_by("created_at")
    )
    for chat in candidates:
        if {p.id for p in chat.participants.all()} == wanted:
            return chat
    return None


def get_or_create_chat(user_a, user_b, property=None):
    """
    Return ``(chat, created)``. Repeated calls with the same pair and property,
    in either order, return the same chat.
    """
    if user_a.id == user_b.id:
        raise ValidationError({"recipient_id": ["You cannot start a chat with yourself."]})

    with transaction.atomic():
        # lock both users so concurrent callers for the same pair serialize
        list(User.objects.select_for_update().filter(id__in=[user_a.id, user_b.id]).order_by("id"))
        chat = find_chat(user_a, user_b, property)
        if chat is not None:
            return chat, False
        chat = Chat.objects.create(property=property)
        chat.participants.add(user_a, user_b)

    logger.info(
        "Chat created chat_id=%s users=%s,%s property=%s",
        chat.id,
        user_a.id,
        user_b.id,
        getattr(property, "id", None),
    )
    return chat, True


def get_chat_for(chat_id, user) -> Chat:
    try:
        chat = Chat.objects.select_related("property").prefetch_related("participants").get(pk=chat_id)
    except (Chat.DoesNotExist, ValueError, TypeError):
        raise NotFound("Chat not found.")
    if not chat.has_participant(user):
        logger.warning("Chat access forbidden chat_id=%s by user_id=%s", chat.id, getattr(user, "id", None))
        raise PermissionDenied("You are not a participant of this chat.")
    return chat


def message_payload(message):
    return {
        "event": RECEIVE_MESSAGE,
        "id": message.id,
        "chat_id": message.chat_id,
        "sender": {"id": message.sender.id, "name": message.sender.name},
        "recipient": {"id": message.recipient.id, "name": message.recipient.name},
        "content": message.content,
        "created_at": message.created_at.isoformat(),
    }


def _push(notifier, user_id, payload):
    try:
        notifier.notify(user_id, payload)
    except Exception as e:
        logger.warning("Realtime notify failed user_id=%s: %s", user_id, e)
        return False
    return True


def send_message(chat_id, sender, content, notifier=None) -> Message:
    """
    Persist a message from ``sender`` to the other participant, bump the chat,
    then push ``receive_message`` to the recipient and to the sender.
    """
    chat = get_chat_for(chat_id, sender)
    content = (content or "").strip()
    if not content:
        raise ValidationError({"content": ["Message content cannot be empty."]})
    if len(content) > MAX_CONTENT_LENGTH:
        raise ValidationError({"content": [f"Message cannot be longer than {MAX_CONTENT_LENGTH} characters."]})

    recipient = chat.other_participant(sender)
    if recipient is None:
        raise ValidationError({"chat": ["Chat has no other participant."]})

    with transaction.atomic():
        message = Message.objects.create(chat=chat, sender=sender, recipient=recipient, content=content)
        Chat.objects.filter(pk=chat.pk).update(updated_at=timezone.now())

    logger.info(
        "Message sent message_id=%s chat_id=%s sender_id=%s recipient_id=%s text_len=%s",
        message.id,
        chat.id,
        sender.id,
        recipient.id,
        len(content),
    )

    if notifier is not None:
        payload = message_payload(message)
        _push(notifier, recipient.id, payload)
        _push(notifier, sender.id, payload)
    return message


def mark_read(chat, user, message_id=None) -> int:
    """Mark one message (or every unread one) addressed to ``user`` in ``chat`` as read."""
    qs = Message.objects.filter(chat=chat, recipient=user, is_read=False)
    if message_id is not None:
        qs = qs.filter(pk=message_id)
    return qs.update(is_read=True)


def unread_count(user, chat=None) -> int:
    qs = Message.objects.filter(recipient=user, is_read=False)
    if chat is not None:
        qs = qs.filter(chat=chat)
    return qs.count()


def chat_messages(chat, viewer, page=1, limit=50):
    """
    Page ``page`` of the newest-first history, returned oldest first, plus the
    total message count. Viewing marks the viewer's incoming messages read.
    """
    page = max(int(page), 1)
    limit = max(min(int(limit), 200), 1)
    offset = (page - 1) * limit

    newest_first = (
        Message.objects
        .filter(chat=chat)
        .select_related("sender", "recipient")
        .order_by("-created_at", "-id")[offset:offset + limit]
    )
    messages = list(reversed(list(newest_first)))
    total = Message.objects.filter(chat=chat).count()
    marked = mark_read(chat, viewer)
    if marked:
        logger.debug("Marked %s messages read chat_id=%s user_id=%s", marked, chat.id, viewer.id)
    return messages, total


def send_typing(chat_id, user, is_typing, notifier=None) -> dict:
    """Relay a typing / stop_typing indicator to the other participant. Nothing is stored."""
    chat = get_chat_for(chat_id, user)
    other = chat.other_participant(user)
    payload = {
        "event": TYPING if is_typing else STOP_TYPING,
        "chat_id": chat.id,
        "user_id": user.id,
        "property_id": chat.property_id,
    }
    if notifier is not None and other is not None:
        _push(notifier, other.id, payload)
    return payload

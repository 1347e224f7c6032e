import json
import logging

import pytest
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework_simplejwt.tokens import RefreshToken

from chats import services
from chats.models import Chat, Message

LIST_URL = "/api/chats/"


@pytest.mark.django_db
def test_get_or_create_chat_is_idempotent_in_either_order(owner, tenant, flat):
    chat, created = services.get_or_create_chat(tenant, owner, flat)
    assert created is True

    again, created_again = services.get_or_create_chat(owner, tenant, flat)
    assert created_again is False
    assert again.pk == chat.pk
    assert Chat.objects.count() == 1

    # a different property is a different conversation
    other, created_other = services.get_or_create_chat(tenant, owner, None)
    assert created_other is True
    assert other.pk != chat.pk


@pytest.mark.django_db
def test_cannot_chat_with_yourself(tenant):
    with pytest.raises(ValidationError):
        services.get_or_create_chat(tenant, tenant)


@pytest.mark.django_db
def test_unread_count_tracks_messages_until_read(owner, tenant, flat, notifier):
    chat, _ = services.get_or_create_chat(tenant, owner, flat)
    for text in ("Hi", "Is it still available?", "Can I visit on Sunday?"):
        services.send_message(chat.id, tenant, text, notifier=notifier)

    assert services.unread_count(owner) == 3
    assert services.unread_count(tenant) == 0

    first = Message.objects.filter(chat=chat).order_by("id").first()
    assert services.mark_read(chat, owner, first.id) == 1
    assert services.unread_count(owner) == 2

    assert services.mark_read(chat, owner) == 2
    assert services.unread_count(owner) == 0
    assert services.mark_read(chat, owner) == 0


@pytest.mark.django_db
def test_send_message_pushes_to_recipient_and_sender(owner, tenant, flat, notifier):
    chat, _ = services.get_or_create_chat(tenant, owner, flat)
    owner_sub = notifier.subscribe(owner.id)
    tenant_sub = notifier.subscribe(tenant.id)

    message = services.send_message(chat.id, tenant, "  Hello there  ", notifier=notifier)
    assert message.content == "Hello there"
    assert message.recipient_id == owner.id

    for sub in (owner_sub, tenant_sub):
        payload = sub.get(timeout=0)
        assert payload["event"] == "receive_message"
        assert payload["id"] == message.id
        assert payload["chat_id"] == chat.id
        assert payload["sender"] == {"id": tenant.id, "name": tenant.name}
        assert payload["content"] == "Hello there"


@pytest.mark.django_db
def test_notifier_failure_does_not_lose_message(owner, tenant, flat):
    class BrokenNotifier:
        def notify(self, user_id, payload):
            raise RuntimeError("socket closed")

    chat, _ = services.get_or_create_chat(tenant, owner, flat)
    message = services.send_message(chat.id, tenant, "Still here", notifier=BrokenNotifier())
    assert Message.objects.filter(pk=message.pk).exists()


@pytest.mark.django_db
def test_send_message_rejects_empty_content_and_outsiders(owner, tenant, other_tenant, flat):
    chat, _ = services.get_or_create_chat(tenant, owner, flat)

    with pytest.raises(ValidationError):
        services.send_message(chat.id, tenant, "   ")
    with pytest.raises(PermissionDenied):
        services.send_message(chat.id, other_tenant, "let me in")
    with pytest.raises(NotFound):
        services.send_message(987654, tenant, "hello")
    assert not Message.objects.exists()


@pytest.mark.django_db
def test_chat_messages_pages_newest_and_marks_read(owner, tenant, flat):
    chat, _ = services.get_or_create_chat(tenant, owner, flat)
    sent = [services.send_message(chat.id, tenant, f"msg {i}") for i in range(3)]

    messages, total = services.chat_messages(chat, owner, page=1, limit=2)
    assert total == 3
    assert [m.id for m in messages] == [sent[1].id, sent[2].id]
    assert services.unread_count(owner) == 0


@pytest.mark.django_db
def test_chat_api(client_for, owner, tenant, other_tenant, flat, notifier):
    tenant_client = client_for(tenant)

    resp = tenant_client.post(LIST_URL, {"recipient_id": owner.id, "property_id": flat.id}, format="json")
    assert resp.status_code == 201
    chat_id = resp.data["id"]
    assert resp.data["other_participant"]["id"] == owner.id
    assert resp.data["other_participant"]["is_owner"] is True

    resp = client_for(owner).post(LIST_URL, {"recipient_id": tenant.id, "property_id": flat.id}, format="json")
    assert resp.status_code == 200
    assert resp.data["id"] == chat_id

    resp = tenant_client.post(f"{LIST_URL}{chat_id}/messages/", {"content": "Hello"}, format="json")
    assert resp.status_code == 201
    assert resp.data["sender"]["id"] == tenant.id

    resp = client_for(owner).get(f"{LIST_URL}unread-count/")
    assert resp.data == {"unread_count": 1}

    resp = client_for(owner).get(LIST_URL)
    assert [c["id"] for c in resp.data] == [chat_id]
    assert resp.data[0]["unread_count"] == 1

    resp = client_for(owner).get(f"{LIST_URL}{chat_id}/", {"page": 1, "limit": 10})
    assert resp.status_code == 200
    assert resp.data["pagination"] == {"page": 1, "limit": 10, "total": 1}
    assert [m["content"] for m in resp.data["messages"]] == ["Hello"]
    assert client_for(owner).get(f"{LIST_URL}unread-count/").data == {"unread_count": 0}

    resp = client_for(owner).put(f"{LIST_URL}{chat_id}/read/", {}, format="json")
    assert resp.data == {"updated_count": 0}

    assert client_for(other_tenant).get(f"{LIST_URL}{chat_id}/").status_code == 403
    assert client_for(other_tenant).get(LIST_URL).data == []


@pytest.mark.django_db
def test_chat_api_unknown_recipient_or_property(client_for, tenant, owner):
    resp = client_for(tenant).post(LIST_URL, {"recipient_id": 99999}, format="json")
    assert resp.status_code == 404

    resp = client_for(tenant).post(LIST_URL, {"recipient_id": owner.id, "property_id": 99999}, format="json")
    assert resp.status_code == 404

    resp = client_for(tenant).post(LIST_URL, {"recipient_id": tenant.id}, format="json")
    assert resp.status_code == 400


@pytest.mark.django_db
def test_event_stream_delivers_messages(settings, client_for, owner, tenant, flat, notifier):
    settings.HOMEFINDER_STREAM_KEEPALIVE = 1
    resp = client_for(owner).get("/api/notifications/stream/")
    assert resp.status_code == 200
    assert resp["Content-Type"].startswith("text/event-stream")
    assert notifier.connected_sessions(owner.id) == 1

    chunks = resp.streaming_content
    assert next(chunks) == b": connected\n\n"

    chat, _ = services.get_or_create_chat(tenant, owner, flat)
    services.send_message(chat.id, tenant, "Ping", notifier=notifier)

    frame = next(chunks).decode()
    assert frame.startswith("event: receive_message\n")
    data = json.loads(frame.split("data: ", 1)[1])
    assert data["content"] == "Ping"

    resp.close()
    assert notifier.connected_sessions(owner.id) == 0


@pytest.mark.django_db
def test_event_stream_requires_auth(api_client):
    assert api_client.get("/api/notifications/stream/").status_code == 401


@pytest.mark.django_db
def test_event_stream_accepts_access_token_in_query(api_client, owner, notifier, caplog):
    token = str(RefreshToken.for_user(owner).access_token)
    with caplog.at_level(logging.INFO, logger="requests"):
        resp = api_client.get("/api/notifications/stream/", {"token": token})
    assert resp.status_code == 200
    assert notifier.connected_sessions(owner.id) == 1
    resp.close()

    lines = [r.getMessage() for r in caplog.records if r.name == "requests"]
    assert lines
    assert all(token not in line for line in lines)
    assert any("token=redacted" in line for line in lines)


@pytest.mark.django_db
def test_event_stream_rejects_bad_query_token(api_client, notifier):
    resp = api_client.get("/api/notifications/stream/", {"token": "not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.django_db
def test_typing_is_relayed_to_the_other_participant_only(client_for, owner, tenant, flat, notifier):
    chat, _ = services.get_or_create_chat(tenant, owner, flat)
    owner_sub = notifier.subscribe(owner.id)
    tenant_sub = notifier.subscribe(tenant.id)
    url = f"{LIST_URL}{chat.id}/typing/"

    resp = client_for(tenant).post(url, {"is_typing": True}, format="json")
    assert resp.status_code == 204
    event = owner_sub.get(timeout=0)
    assert event["event"] == "typing"
    assert event["user_id"] == tenant.id
    assert event["property_id"] == flat.id

    client_for(tenant).post(url, {"is_typing": False}, format="json")
    assert owner_sub.get(timeout=0)["event"] == "stop_typing"

    assert tenant_sub.get(timeout=0) is None
    assert not Message.objects.exists()


@pytest.mark.django_db
def test_typing_requires_participation(client_for, owner, tenant, other_tenant, flat, notifier):
    chat, _ = services.get_or_create_chat(tenant, owner, flat)
    owner_sub = notifier.subscribe(owner.id)

    resp = client_for(other_tenant).post(f"{LIST_URL}{chat.id}/typing/", {"is_typing": True}, format="json")
    assert resp.status_code == 403
    assert owner_sub.get(timeout=0) is None

    resp = client_for(tenant).post(f"{LIST_URL}999999/typing/", {"is_typing": True}, format="json")
    assert resp.status_code == 404


@pytest.mark.django_db
def test_message_to_unknown_chat_is_not_found_before_validation(client_for, tenant):
    resp = client_for(tenant).post(f"{LIST_URL}999999/messages/", {"content": ""}, format="json")
    assert resp.status_code == 404

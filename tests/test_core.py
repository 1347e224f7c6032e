import logging
from types import SimpleNamespace

import pytest
from django.contrib.auth.models import AnonymousUser
from rest_framework import exceptions
from rest_framework.exceptions import PermissionDenied

from homefinder.exceptions import Conflict, UpstreamError, structured_exception_handler
from homefinder.permissions import is_admin, require_ownership
from homefinder.services import ServiceRegistry, get_services
from notifications.mail import DjangoTemplateMailer
from notifications.realtime import InMemoryNotifier
from properties.geocoding import NominatimGeocoder
from properties.storage import DjangoStorageImageStore


def handle(exc):
    return structured_exception_handler(exc, {"view": None})


@pytest.mark.parametrize("exc,status_code,kind", [
    (exceptions.NotFound("No property found."), 404, "not_found"),
    (exceptions.PermissionDenied("Nope."), 403, "forbidden"),
    (exceptions.NotAuthenticated(), 401, "authentication"),
    (Conflict("Property is already booked for these dates."), 409, "conflict"),
    (UpstreamError("Geocoder down."), 502, "upstream"),
])
def test_api_errors_are_structured(exc, status_code, kind):
    response = handle(exc)
    assert response.status_code == status_code
    assert response.data == {"kind": kind, "detail": str(exc.detail)}


def test_validation_errors_keep_field_messages():
    response = handle(exceptions.ValidationError({"end_date": ["End date must be after start date."]}))
    assert response.status_code == 400
    assert response.data["kind"] == "validation"
    assert response.data["detail"] == "Invalid input: end_date."
    assert response.data["errors"] == {"end_date": ["End date must be after start date."]}


def test_non_field_validation_error_uses_first_message():
    response = handle(exceptions.ValidationError("Please provide latitude and longitude."))
    assert response.data["detail"] == "Please provide latitude and longitude."
    assert response.data["errors"] == {"non_field_errors": ["Please provide latitude and longitude."]}


def test_unexpected_errors_become_opaque_500(caplog):
    with caplog.at_level(logging.ERROR, logger="homefinder"):
        response = handle(RuntimeError("database exploded"))
    assert response.status_code == 500
    assert response.data == {"kind": "server_error", "detail": "Internal server error."}
    assert "database exploded" not in str(response.data)
    assert any("Unhandled error" in r.getMessage() for r in caplog.records)


def test_require_ownership():
    owner = SimpleNamespace(id=1, is_authenticated=True, is_admin=False)
    stranger = SimpleNamespace(id=2, is_authenticated=True, is_admin=False)
    admin = SimpleNamespace(id=3, is_authenticated=True, is_admin=True)
    listing = SimpleNamespace(owner_id=1)

    require_ownership(listing, owner)
    require_ownership(listing, admin)
    with pytest.raises(PermissionDenied):
        require_ownership(listing, stranger)


def test_is_admin():
    assert is_admin(AnonymousUser()) is False
    assert is_admin(SimpleNamespace(is_authenticated=True, is_admin=True)) is True


@pytest.mark.django_db
def test_superuser_counts_as_admin(user_factory):
    root = user_factory("root@example.com", is_superuser=True, is_staff=True)
    assert is_admin(root) is True


def test_default_service_registry():
    services = get_services()
    assert isinstance(services, ServiceRegistry)
    assert isinstance(services.mailer, DjangoTemplateMailer)
    assert isinstance(services.image_store, DjangoStorageImageStore)
    assert isinstance(services.geocoder, NominatimGeocoder)
    assert isinstance(services.notifier, InMemoryNotifier)
    assert get_services() is services


@pytest.mark.django_db
def test_requests_see_the_registry(client_for, tenant, notifier):
    # the SSE view reads request.services.notifier
    resp = client_for(tenant).get("/api/notifications/stream/")
    assert notifier.connected_sessions(tenant.id) == 1
    resp.close()


@pytest.mark.django_db
def test_api_root_lists_entry_points(api_client):
    resp = api_client.get("/api/")
    assert resp.status_code == 200
    assert resp.data["properties"].endswith("/api/properties/")
    assert resp.data["bookings"].endswith("/api/bookings/")
    assert resp.data["chats"].endswith("/api/chats/")
    assert resp.data["notifications_stream"].endswith("/api/notifications/stream/")

    accounts = api_client.get("/api/accounts/")
    assert accounts.data["login"].endswith("/api/accounts/login/")


@pytest.mark.django_db
def test_request_log_line(api_client, caplog):
    with caplog.at_level(logging.INFO, logger="requests"):
        api_client.get("/api/properties/", {"city": "Pune"})
    lines = [r.getMessage() for r in caplog.records if r.name == "requests"]
    assert any('"path": "/api/properties/"' in line and '"status": 200' in line for line in lines)

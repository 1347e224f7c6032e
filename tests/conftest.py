import io
from datetime import date
from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from accounts.models import User
from homefinder.services import get_services
from notifications.mail import MailResult
from notifications.realtime import InMemoryNotifier
from properties.models import Property


class RecordingMailer:
    """Stands in for the mail sender; records every message, optionally failing."""

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, template, to, subject, context=None):
        self.sent.append({"template": template, "to": to, "subject": subject, "context": context or {}})
        if self.fail:
            return MailResult(success=False, error="SMTP unavailable")
        return MailResult(success=True)


class GeocoderStub:
    def __init__(self, reverse_result=None, forward_result=None):
        self.reverse_result = reverse_result
        self.forward_result = forward_result
        self.calls = []

    def reverse(self, lat, lon):
        self.calls.append(("reverse", lat, lon))
        return self.reverse_result

    def forward(self, address):
        self.calls.append(("forward", address))
        return self.forward_result


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path / "media"
    return settings.MEDIA_ROOT


@pytest.fixture
def services():
    return get_services()


@pytest.fixture
def mailer(services, monkeypatch):
    recording = RecordingMailer()
    monkeypatch.setattr(services, "mailer", recording)
    return recording


@pytest.fixture
def failing_mailer(services, monkeypatch):
    recording = RecordingMailer(fail=True)
    monkeypatch.setattr(services, "mailer", recording)
    return recording


@pytest.fixture
def notifier(services, monkeypatch):
    fresh = InMemoryNotifier(queue_size=10)
    monkeypatch.setattr(services, "notifier", fresh)
    return fresh


@pytest.fixture
def geocoder(services, monkeypatch):
    stub = GeocoderStub()
    monkeypatch.setattr(services, "geocoder", stub)
    return stub


@pytest.fixture
def user_factory(db):
    def create_user(email, password="Pass12345!", name="Test User", verified=True, **extra):
        return User.objects.create_user(
            email=email,
            password=password,
            name=name,
            is_email_verified=verified,
            **extra,
        )
    return create_user


@pytest.fixture
def owner(user_factory):
    return user_factory("owner@example.com", name="Olga Owner")


@pytest.fixture
def tenant(user_factory):
    return user_factory("tenant@example.com", name="Tom Tenant")


@pytest.fixture
def other_tenant(user_factory):
    return user_factory("tenant2@example.com", name="Tina Tenant")


@pytest.fixture
def admin_user(user_factory):
    return user_factory("admin@example.com", name="Ada Admin", role=User.Roles.ADMIN)


@pytest.fixture
def property_factory(db):
    def create_property(owner, title="Flat A", price="10000.00", deposit="20000.00", **extra):
        data = dict(
            title=title,
            description="Bright two-room flat",
            price=Decimal(price),
            deposit=Decimal(deposit),
            location="12 Park Street",
            city="Pune",
            property_type=Property.PropertyType.APARTMENT,
            bedrooms=2,
            bathrooms=1,
            area=850,
            furnishing=Property.Furnishing.FURNISHED,
            amenities=["wifi", "parking"],
            images=["/media/properties/photo_seed.jpg"],
            available_from=date(2024, 1, 1),
        )
        data.update(extra)
        return Property.objects.create(owner=owner, **data)
    return create_property


@pytest.fixture
def flat(owner, property_factory):
    return property_factory(owner)


def auth_client(user):
    client = APIClient()
    token = RefreshToken.for_user(user).access_token
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    return auth_client


@pytest.fixture
def image_file():
    def make(name="photo.png", size=(8, 8), color="red"):
        buf = io.BytesIO()
        Image.new("RGB", size, color=color).save(buf, format="PNG")
        return SimpleUploadedFile(name, buf.getvalue(), content_type="image/png")
    return make

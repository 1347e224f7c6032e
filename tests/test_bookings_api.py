import logging

import pytest
from django.urls import reverse

from bookings.models import Booking
from properties.models import Property

LIST_URL = "/api/bookings/"


def detail_url(booking_id, action=None):
    url = f"/api/bookings/{booking_id}/"
    return f"{url}{action}/" if action else url


def booking_payload(prop, start="2024-01-01", end="2024-02-01", **extra):
    return {"property": prop.id, "start_date": start, "end_date": end, **extra}


@pytest.mark.django_db
def test_booking_flow_end_to_end(client_for, flat, owner, tenant, other_tenant, mailer):
    tenant_client = client_for(tenant)

    resp = tenant_client.post(LIST_URL, booking_payload(flat), format="json")
    assert resp.status_code == 201, resp.data
    booking_id = resp.data["id"]
    assert resp.data["status"] == "pending"
    assert resp.data["email_send_error"] is False
    assert resp.data["owner"]["email"] == owner.email
    assert {m["to"] for m in mailer.sent} == {tenant.email, owner.email}

    # overlapping request from another tenant
    resp = client_for(other_tenant).post(
        LIST_URL, booking_payload(flat, "2024-01-15", "2024-02-15"), format="json"
    )
    assert resp.status_code == 409
    assert resp.data["kind"] == "conflict"

    # the owner confirms
    resp = client_for(owner).post(detail_url(booking_id, "confirm"))
    assert resp.status_code == 200
    assert resp.data["status"] == "confirmed"

    # adjacent range is free
    resp = client_for(other_tenant).post(
        LIST_URL, booking_payload(flat, "2024-02-01", "2024-03-01"), format="json"
    )
    assert resp.status_code == 201

    resp = tenant_client.post(detail_url(booking_id, "cancel"))
    assert resp.status_code == 200
    assert resp.data["status"] == "cancelled"

    # the cancelled range can be booked again
    resp = client_for(other_tenant).post(LIST_URL, booking_payload(flat), format="json")
    assert resp.status_code == 201


@pytest.mark.django_db
def test_owner_cannot_book_own_property(client_for, flat, owner, mailer):
    resp = client_for(owner).post(LIST_URL, booking_payload(flat), format="json")
    assert resp.status_code == 403
    assert resp.data["kind"] == "forbidden"
    assert not Booking.objects.exists()
    assert mailer.sent == []


@pytest.mark.django_db
def test_create_requires_authentication(api_client, flat):
    resp = api_client.post(LIST_URL, booking_payload(flat), format="json")
    assert resp.status_code == 401
    assert resp.data["kind"] == "authentication"


@pytest.mark.django_db
def test_create_validates_dates(client_for, flat, tenant, mailer):
    resp = client_for(tenant).post(
        LIST_URL, booking_payload(flat, "2024-02-01", "2024-01-01"), format="json"
    )
    assert resp.status_code == 400
    assert resp.data["kind"] == "validation"
    assert "end_date" in resp.data["errors"]


@pytest.mark.django_db
def test_unknown_property_is_404(client_for, tenant, mailer):
    resp = client_for(tenant).post(
        LIST_URL, {"property": 424242, "start_date": "2024-01-01", "end_date": "2024-02-01"}, format="json"
    )
    assert resp.status_code == 404
    assert resp.data["kind"] == "not_found"


@pytest.mark.django_db
def test_mail_failure_is_reported_not_fatal(client_for, flat, tenant, failing_mailer):
    resp = client_for(tenant).post(LIST_URL, booking_payload(flat), format="json")
    assert resp.status_code == 201
    assert resp.data["email_send_error"] is True
    assert Booking.objects.count() == 1


@pytest.mark.django_db
def test_booking_creation_is_logged(client_for, flat, tenant, mailer, caplog):
    with caplog.at_level(logging.INFO, logger="bookings"):
        client_for(tenant).post(LIST_URL, booking_payload(flat), format="json")
    assert any("Booking created" in r.getMessage() for r in caplog.records)


@pytest.mark.django_db
def test_list_is_scoped_to_participants(client_for, flat, owner, tenant, other_tenant, admin_user, mailer):
    client_for(tenant).post(LIST_URL, booking_payload(flat), format="json")

    assert len(client_for(tenant).get(LIST_URL).data) == 1
    assert len(client_for(owner).get(LIST_URL).data) == 1
    assert client_for(other_tenant).get(LIST_URL).data == []
    assert len(client_for(admin_user).get(LIST_URL).data) == 1

    assert len(client_for(tenant).get(reverse("booking-my-bookings")).data) == 1
    assert client_for(tenant).get(reverse("booking-my-property-bookings")).data == []
    assert len(client_for(owner).get(reverse("booking-my-property-bookings")).data) == 1


@pytest.mark.django_db
def test_stranger_cannot_see_or_cancel_booking(client_for, flat, tenant, other_tenant, mailer, caplog):
    booking_id = client_for(tenant).post(LIST_URL, booking_payload(flat), format="json").data["id"]
    stranger = client_for(other_tenant)

    with caplog.at_level(logging.WARNING, logger="bookings"):
        assert stranger.get(detail_url(booking_id)).status_code == 403
        assert stranger.post(detail_url(booking_id, "cancel")).status_code == 403
    assert any("forbidden" in r.getMessage() for r in caplog.records)
    assert Booking.objects.get(pk=booking_id).status == Booking.Status.PENDING


@pytest.mark.django_db
def test_tenant_cannot_confirm(client_for, flat, tenant, mailer):
    booking_id = client_for(tenant).post(LIST_URL, booking_payload(flat), format="json").data["id"]
    resp = client_for(tenant).post(detail_url(booking_id, "confirm"))
    assert resp.status_code == 403


@pytest.mark.django_db
def test_cancelled_booking_cannot_be_reopened(client_for, flat, owner, tenant, mailer):
    booking_id = client_for(tenant).post(LIST_URL, booking_payload(flat), format="json").data["id"]
    client_for(tenant).post(detail_url(booking_id, "cancel"))

    resp = client_for(owner).post(detail_url(booking_id, "confirm"))
    assert resp.status_code == 400
    assert resp.data["kind"] == "validation"


@pytest.mark.django_db
def test_patch_dates_rechecks_overlap(client_for, flat, tenant, other_tenant, mailer):
    first = client_for(tenant).post(LIST_URL, booking_payload(flat), format="json").data["id"]
    client_for(other_tenant).post(LIST_URL, booking_payload(flat, "2024-03-01", "2024-04-01"), format="json")

    resp = client_for(tenant).patch(detail_url(first), {"end_date": "2024-03-10"}, format="json")
    assert resp.status_code == 409

    resp = client_for(tenant).patch(detail_url(first), {"end_date": "2024-02-20"}, format="json")
    assert resp.status_code == 200
    assert resp.data["end_date"] == "2024-02-20"


@pytest.mark.django_db
def test_demo_booking(client_for, flat, tenant, mailer):
    resp = client_for(tenant).post(
        reverse("booking-demo-booking"),
        {"property_id": flat.id, "move_in_date": "2024-03-01", "lease_duration": 6},
        format="json",
    )
    assert resp.status_code == 201, resp.data
    assert resp.data["message"] == "Demo booking confirmed successfully (No payment required)"
    assert resp.data["status"] == "confirmed"
    assert resp.data["end_date"] == "2024-09-01"
    assert resp.data["total_amount"] == "80499.00"

    flat.refresh_from_db()
    assert flat.status == Property.Status.RENTED

    # a rented property takes no further bookings
    resp = client_for(tenant).post(LIST_URL, booking_payload(flat, "2025-01-01", "2025-02-01"), format="json")
    assert resp.status_code == 409


@pytest.mark.django_db
def test_list_filters_by_status(client_for, flat, owner, tenant, other_tenant, mailer):
    first = client_for(tenant).post(LIST_URL, booking_payload(flat), format="json").data["id"]
    client_for(other_tenant).post(LIST_URL, booking_payload(flat, "2024-03-01", "2024-04-01"), format="json")
    client_for(owner).post(detail_url(first, "confirm"))

    resp = client_for(owner).get(LIST_URL, {"status": "confirmed"})
    assert [b["id"] for b in resp.data] == [first]

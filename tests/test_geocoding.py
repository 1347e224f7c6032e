from unittest import mock

import pytest
import requests

from properties.geocoding import NOT_FOUND, UNAVAILABLE, NominatimGeocoder

REVERSE_URL = "/api/utils/geocode/reverse/"
FORWARD_URL = "/api/utils/geocode/forward/"

NOMINATIM_REVERSE = {
    "display_name": "221, Baker Street, Pune, Maharashtra, 411001, India",
    "address": {
        "house_number": "221",
        "road": "Baker Street",
        "town": "Pune",
        "state": "Maharashtra",
        "country": "India",
        "postcode": "411001",
    },
}


def fake_response(payload, status_code=200):
    resp = mock.Mock()
    resp.status_code = status_code
    resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def nominatim():
    return NominatimGeocoder(base_url="https://geo.example.test/", user_agent="Tests/1.0", timeout=3)


def test_reverse_normalizes_address(nominatim):
    with mock.patch("properties.geocoding.requests.get", return_value=fake_response(NOMINATIM_REVERSE)) as get:
        result = nominatim.reverse(18.52, 73.85)

    assert result["success"] is True
    assert result["address"] == {
        "full": NOMINATIM_REVERSE["display_name"],
        "street": "221 Baker Street",
        "city": "Pune",
        "state": "Maharashtra",
        "country": "India",
        "postal_code": "411001",
        "coordinates": {"lat": 18.52, "lng": 73.85},
    }
    args, kwargs = get.call_args
    assert args[0] == "https://geo.example.test/reverse"
    assert kwargs["headers"] == {"User-Agent": "Tests/1.0"}
    assert kwargs["timeout"] == 3
    assert kwargs["params"]["format"] == "json"


def test_reverse_without_match(nominatim):
    with mock.patch("properties.geocoding.requests.get", return_value=fake_response({"error": "Unable to geocode"})):
        result = nominatim.reverse(0.0, 0.0)
    assert result["success"] is False
    assert result["reason"] == NOT_FOUND


@pytest.mark.parametrize("side_effect", [
    requests.ConnectionError("connection refused"),
    requests.Timeout("read timed out"),
])
def test_network_failures_are_reported_not_raised(nominatim, side_effect):
    with mock.patch("properties.geocoding.requests.get", side_effect=side_effect):
        assert nominatim.reverse(1, 2)["reason"] == UNAVAILABLE
        assert nominatim.forward("anywhere")["reason"] == UNAVAILABLE


def test_http_error_is_unavailable(nominatim):
    with mock.patch("properties.geocoding.requests.get", return_value=fake_response({}, status_code=503)):
        result = nominatim.forward("Pune")
    assert result == {
        "success": False,
        "error": "Failed to get coordinates for the address",
        "reason": UNAVAILABLE,
    }


def test_forward_takes_first_match(nominatim):
    payload = [
        {"lat": "18.5204", "lon": "73.8567", "display_name": "Pune, India", "address": {"city": "Pune", "country": "India"}},
        {"lat": "1", "lon": "2", "display_name": "Elsewhere"},
    ]
    with mock.patch("properties.geocoding.requests.get", return_value=fake_response(payload)) as get:
        result = nominatim.forward("Pune")

    assert result["success"] is True
    assert result["coordinates"] == {"lat": 18.5204, "lng": 73.8567}
    assert result["address"]["city"] == "Pune"
    assert get.call_args.kwargs["params"]["q"] == "Pune"


def test_forward_no_match(nominatim):
    with mock.patch("properties.geocoding.requests.get", return_value=fake_response([])):
        assert nominatim.forward("Atlantis")["reason"] == NOT_FOUND


@pytest.mark.django_db
def test_reverse_endpoint_accepts_both_coordinate_spellings(api_client, geocoder):
    geocoder.reverse_result = {"success": True, "address": {"full": "Somewhere"}}

    resp = api_client.post(REVERSE_URL, {"lat": 10.5, "lon": 20.25}, format="json")
    assert resp.status_code == 200
    assert resp.data["address"]["full"] == "Somewhere"

    resp = api_client.post(REVERSE_URL, {"latitude": 11, "longitude": 21}, format="json")
    assert resp.status_code == 200
    assert geocoder.calls == [("reverse", 10.5, 20.25), ("reverse", 11.0, 21.0)]


@pytest.mark.django_db
def test_reverse_endpoint_requires_coordinates(api_client, geocoder):
    resp = api_client.post(REVERSE_URL, {"lat": 10}, format="json")
    assert resp.status_code == 400
    assert resp.data["detail"] == "Please provide latitude and longitude."
    assert geocoder.calls == []


@pytest.mark.django_db
def test_geocode_failures_map_to_http_errors(api_client, geocoder):
    geocoder.forward_result = {"success": False, "error": "No coordinates found", "reason": NOT_FOUND}
    resp = api_client.post(FORWARD_URL, {"address": "Atlantis"}, format="json")
    assert resp.status_code == 404
    assert resp.data == {"kind": "not_found", "detail": "No coordinates found"}

    geocoder.forward_result = {"success": False, "error": "Upstream down", "reason": UNAVAILABLE}
    resp = api_client.post(FORWARD_URL, {"address": "Pune"}, format="json")
    assert resp.status_code == 502
    assert resp.data["kind"] == "upstream"


@pytest.mark.django_db
def test_geocode_routes_under_properties(api_client, geocoder):
    geocoder.forward_result = {"success": True, "coordinates": {"lat": 1.0, "lng": 2.0}, "address": {}}
    resp = api_client.post("/api/properties/geocode/forward/", {"address": "Pune"}, format="json")
    assert resp.status_code == 200
    assert resp.data["coordinates"] == {"lat": 1.0, "lng": 2.0}

from urllib.parse import urlencode

import pytest
from rest_framework.test import APIClient

from accounts.models import Address

PAYLOAD = {
    "full_name": "Asha Verma",
    "phone": "9876543210",
    "line1": "12 MG Road",
    "pincode": "560001",
    "city": "Bengaluru",
    "state": "Karnataka",
    "country": "India",
}


@pytest.mark.django_db
def test_create_list_and_make_default(auth_api_client: APIClient, user):
    r = auth_api_client.post("/api/addresses/", PAYLOAD, format="json")
    assert r.status_code == 201
    first_id = r.data["id"]
    assert r.data["is_default"] is True

    r = auth_api_client.post("/api/addresses/", {**PAYLOAD, "line1": "7 Park Street"}, format="json")
    second_id = r.data["id"]
    assert r.data["is_default"] is False

    r = auth_api_client.post(f"/api/addresses/{second_id}/make_default/")
    assert r.status_code == 200
    assert Address.objects.get(pk=first_id).is_default is False

    r = auth_api_client.get("/api/addresses/")
    assert [a["id"] for a in r.data] == [second_id, first_id]


@pytest.mark.django_db
def test_validation_errors_are_field_keyed(auth_api_client: APIClient):
    r = auth_api_client.post("/api/addresses/", {**PAYLOAD, "phone": "123"}, format="json")
    assert r.status_code == 400
    assert "phone" in r.data["fields"]
    assert not Address.objects.exists()


@pytest.mark.django_db
def test_delete_default_reports_promotion(auth_api_client: APIClient):
    first = auth_api_client.post("/api/addresses/", PAYLOAD, format="json").data["id"]
    second = auth_api_client.post("/api/addresses/", {**PAYLOAD, "line1": "7 Park Street"}, format="json").data["id"]

    r = auth_api_client.delete(f"/api/addresses/{first}/")
    assert r.status_code == 200
    assert r.data["promoted_default"] == second

    r = auth_api_client.delete(f"/api/addresses/{second}/")
    assert r.status_code == 204


@pytest.mark.django_db
def test_other_users_address_is_404(auth_api_client: APIClient):
    from tests.factories import AddressFactory

    other = AddressFactory()
    assert auth_api_client.get(f"/api/addresses/{other.pk}/").status_code == 404


@pytest.mark.django_db
@pytest.mark.parametrize("flag", ["false", "0", False])
def test_false_default_flag_keeps_existing_default(auth_api_client: APIClient, flag):
    first = auth_api_client.post("/api/addresses/", PAYLOAD, format="json").data["id"]

    r = auth_api_client.post("/api/addresses/", {**PAYLOAD, "line1": "7 Park Street", "is_default": flag}, format="json")
    assert r.status_code == 201
    assert r.data["is_default"] is False
    assert Address.objects.get(pk=first).is_default is True


@pytest.mark.django_db
def test_form_encoded_default_flag_is_parsed(auth_api_client: APIClient):
    auth_api_client.post("/api/addresses/", PAYLOAD, format="json")
    body = urlencode({**PAYLOAD, "line1": "7 Park Street", "is_default": "false"})
    r = auth_api_client.post("/api/addresses/", body, content_type="application/x-www-form-urlencoded")
    assert r.status_code == 201
    assert r.data["is_default"] is False


@pytest.mark.django_db
def test_unparseable_default_flag_rejected(auth_api_client: APIClient):
    r = auth_api_client.post("/api/addresses/", {**PAYLOAD, "is_default": "maybe"}, format="json")
    assert r.status_code == 400
    assert "is_default" in r.data["fields"]


@pytest.mark.django_db
def test_over_long_fields_are_field_errors(auth_api_client: APIClient):
    r = auth_api_client.post(
        "/api/addresses/",
        {**PAYLOAD, "full_name": "A" * 121, "pincode": "5" * 13},
        format="json",
    )
    assert r.status_code == 400
    assert set(r.data["fields"]) == {"full_name", "pincode"}
    assert not Address.objects.exists()


@pytest.mark.django_db
def test_partial_update_validates_lengths(auth_api_client: APIClient):
    address_id = auth_api_client.post("/api/addresses/", PAYLOAD, format="json").data["id"]
    r = auth_api_client.patch(f"/api/addresses/{address_id}/", {"city": "C" * 81}, format="json")
    assert r.status_code == 400
    assert "city" in r.data["fields"]

    r = auth_api_client.patch(f"/api/addresses/{address_id}/", {"city": "Mysuru"}, format="json")
    assert r.data["city"] == "Mysuru"

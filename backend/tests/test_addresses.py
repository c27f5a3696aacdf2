"""
Customer address tests.

Verifies:
- First address becomes the default; exactly one default afterwards
- Default address cannot be deleted
- Coordinate validation and delivery-zone lookup
"""

import pytest

from justoo.models import CustomerAddress, DeliveryZone


ADDRESSES = "/customer/api/addresses"


def _create(client, headers, **overrides):
    payload = {"full_address": "221B Residency Road", "city": "Bengaluru", "type": "home"}
    payload.update(overrides)
    return client.post(ADDRESSES, json=payload, headers=headers)


class TestAddressBook:
    def test_first_address_is_default(self, client, customer_headers):
        resp = _create(client, customer_headers)
        assert resp.status_code == 201
        assert resp.json["data"]["is_default"] is True

        second = _create(client, customer_headers, full_address="Tech Park, Whitefield", type="work")
        assert second.json["data"]["is_default"] is False

        default = client.get(f"{ADDRESSES}/default", headers=customer_headers)
        assert default.json["data"]["id"] == resp.json["data"]["id"]

    @pytest.mark.parametrize("flag", ["false", "0", False])
    def test_false_string_flag_keeps_default(self, client, customer_headers, flag):
        first = _create(client, customer_headers).json["data"]
        second = _create(client, customer_headers, full_address="Tech Park", is_default=flag).json["data"]
        assert second["is_default"] is False

        updated = client.put(
            f"{ADDRESSES}/{second['id']}", json={"is_default": flag}, headers=customer_headers
        ).json["data"]
        assert updated["is_default"] is False

        default = client.get(f"{ADDRESSES}/default", headers=customer_headers).json["data"]
        assert default["id"] == first["id"]

    def test_string_true_flag_on_update(self, client, customer_headers):
        _create(client, customer_headers)
        second = _create(client, customer_headers, full_address="Tech Park").json["data"]
        resp = client.put(f"{ADDRESSES}/{second['id']}", json={"is_default": "true"}, headers=customer_headers)
        assert resp.json["data"]["is_default"] is True

    def test_new_default_moves_flag(self, client, db_session, customer, customer_headers):
        first = _create(client, customer_headers).json["data"]
        second = _create(client, customer_headers, full_address="Tech Park", is_default=True).json["data"]

        defaults = (
            db_session.query(CustomerAddress)
            .filter_by(customer_id=customer.id, is_default=True, is_active=True)
            .all()
        )
        assert [a.id for a in defaults] == [second["id"]]

        resp = client.put(f"{ADDRESSES}/{first['id']}/default", headers=customer_headers)
        assert resp.status_code == 200
        listing = client.get(ADDRESSES, headers=customer_headers).json["data"]
        assert [a["id"] for a in listing if a["is_default"]] == [first["id"]]

    def test_no_default_address(self, client, customer_headers):
        resp = client.get(f"{ADDRESSES}/default", headers=customer_headers)
        assert resp.status_code == 404
        assert resp.json["message"] == "No default address found"

    def test_full_address_required(self, client, customer_headers):
        resp = client.post(ADDRESSES, json={"city": "Bengaluru"}, headers=customer_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Full address is required"

    def test_invalid_type(self, client, customer_headers):
        resp = _create(client, customer_headers, type="castle")
        assert resp.status_code == 400

    def test_update_address(self, client, customer_headers, address):
        resp = client.put(
            f"{ADDRESSES}/{address.id}",
            json={"landmark": "Opposite the metro station", "pincode": "560001"},
            headers=customer_headers,
        )
        assert resp.status_code == 200
        assert resp.json["data"]["landmark"] == "Opposite the metro station"

    def test_cannot_delete_default(self, client, customer_headers, address):
        resp = client.delete(f"{ADDRESSES}/{address.id}", headers=customer_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Cannot delete default address. Please set another address as default first."

    def test_delete_is_soft(self, client, db_session, customer_headers, address):
        other = _create(client, customer_headers, full_address="Old flat").json["data"]
        resp = client.delete(f"{ADDRESSES}/{other['id']}", headers=customer_headers)
        assert resp.status_code == 200

        assert client.get(f"{ADDRESSES}/{other['id']}", headers=customer_headers).status_code == 404
        assert db_session.get(CustomerAddress, other["id"]).is_active is False


class TestValidateLocation:
    def test_no_zones_means_serviceable(self, client, customer_headers):
        resp = client.post(f"{ADDRESSES}/validate", json={"latitude": 12.97, "longitude": 77.59}, headers=customer_headers)
        assert resp.status_code == 200
        assert resp.json["data"] == {
            "is_valid": True,
            "in_service_area": True,
            "estimated_delivery_time": 60,
            "zone": None,
        }

    @pytest.mark.parametrize("lat,lng,message", [
        (91, 77.59, "Invalid latitude"),
        (12.97, -181, "Invalid longitude"),
        (None, 77.59, "Latitude and longitude are required"),
    ])
    def test_invalid_coordinates(self, client, customer_headers, lat, lng, message):
        resp = client.post(f"{ADDRESSES}/validate", json={"latitude": lat, "longitude": lng}, headers=customer_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == message

    def test_zone_lookup(self, client, db_session, customer_headers):
        db_session.add(DeliveryZone(
            name="Central Bengaluru",
            code="BLR-C",
            center_latitude=12.9716,
            center_longitude=77.5946,
            radius_km=5,
            estimated_delivery_minutes=20,
            status="active",
            is_active=True,
        ))
        db_session.commit()

        inside = client.post(f"{ADDRESSES}/validate", json={"latitude": 12.98, "longitude": 77.60}, headers=customer_headers)
        assert inside.json["data"]["in_service_area"] is True
        assert inside.json["data"]["zone"]["code"] == "BLR-C"
        assert inside.json["data"]["estimated_delivery_time"] == 20

        outside = client.post(f"{ADDRESSES}/validate", json={"latitude": 13.5, "longitude": 77.59}, headers=customer_headers)
        assert outside.json["data"]["in_service_area"] is False
        assert outside.json["data"]["zone"] is None

"""HTTP contract tests for the customer endpoints."""

from datetime import datetime

from sqlalchemy.exc import OperationalError

from app.core.deps import get_customer_store
from app.services.customer_store import CustomerStore


def _register(client, name="Asha", phone="9876543210"):
    return client.post("/api/customers", json={"name": name, "phoneNumber": phone})


class TestRegister:
    def test_creates_customer(self, client):
        resp = _register(client)
        assert resp.status_code == 201
        body = resp.json()
        assert set(body) == {"_id", "name", "phoneNumber", "visits", "createdAt", "updatedAt"}
        assert body["name"] == "Asha"
        assert body["phoneNumber"] == "9876543210"
        assert body["visits"] == 1
        created = datetime.fromisoformat(body["createdAt"].replace("Z", "+00:00"))
        updated = datetime.fromisoformat(body["updatedAt"].replace("Z", "+00:00"))
        assert created.tzinfo is not None
        assert updated >= created

    def test_repeat_registration_returns_same_customer(self, client):
        first = _register(client).json()
        second = _register(client, name="Different Name").json()
        assert second["_id"] == first["_id"]
        assert second["visits"] == first["visits"] == 1

    def test_formatted_phone_is_normalized(self, client):
        body = _register(client, phone="(987) 654-3210").json()
        assert body["phoneNumber"] == "9876543210"

    def test_short_phone_is_400(self, client, admin_client):
        resp = _register(client, phone="12345")
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Please enter your name and a valid phone number"}
        assert admin_client.get("/api/customers").json() == []

    def test_missing_fields_are_400(self, client):
        assert client.post("/api/customers", json={}).status_code == 400


class TestLookupByPhone:
    def test_found(self, client):
        created = _register(client).json()
        resp = client.get("/api/customers/phone/9876543210")
        assert resp.status_code == 200
        assert resp.json()["_id"] == created["_id"]

    def test_absent_is_404(self, client):
        resp = client.get("/api/customers/phone/9876543210")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Not found"}

    def test_malformed_is_400(self, client):
        assert client.get("/api/customers/phone/123").status_code == 400


class TestAdminCustomerViews:
    def test_list_requires_admin(self, client):
        assert client.get("/api/customers").status_code == 401

    def test_list_in_creation_order(self, admin_client):
        for i, phone in enumerate(["9000000001", "9000000002", "9000000003"]):
            _register(admin_client, name=f"Guest {i}", phone=phone)
        body = admin_client.get("/api/customers").json()
        assert [c["phoneNumber"] for c in body] == ["9000000001", "9000000002", "9000000003"]

    def test_stats(self, admin_client):
        a = _register(admin_client, phone="9000000001").json()
        _register(admin_client, phone="9000000002")
        admin_client.post(f"/api/customers/{a['_id']}/visits")
        resp = admin_client.get("/api/customers/stats")
        assert resp.status_code == 200
        assert resp.json() == {"totalCustomers": 2, "totalVisits": 3, "averageVisits": 1.5}

    def test_stats_requires_admin(self, client):
        assert client.get("/api/customers/stats").status_code == 401

    def test_check_in(self, admin_client):
        c = _register(admin_client).json()
        resp = admin_client.post(f"/api/customers/{c['_id']}/visits")
        assert resp.status_code == 200
        assert resp.json()["visits"] == 2
        assert resp.json()["_id"] == c["_id"]

    def test_check_in_unknown(self, admin_client):
        assert admin_client.post("/api/customers/missing/visits").status_code == 404

    def test_check_in_requires_admin(self, client):
        c = _register(client).json()
        assert client.post(f"/api/customers/{c['_id']}/visits").status_code == 401


class _LockedSession:
    def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("could not connect to server at 10.1.2.3"))

    def rollback(self):
        pass


class TestStorageUnavailable:
    def test_generic_503(self, app, client):
        app.dependency_overrides[get_customer_store] = lambda: CustomerStore(_LockedSession())
        resp = client.get("/api/customers/phone/9876543210")
        assert resp.status_code == 503
        assert resp.json() == {"detail": "Service temporarily unavailable"}
        assert resp.headers["retry-after"]
        assert "10.1.2.3" not in resp.text


class TestMalformedBodies:
    def test_numeric_phone_is_400_without_echo(self, client):
        resp = client.post("/api/customers", json={"name": "Asha", "phoneNumber": 9876543210})
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Please enter your name and a valid phone number"}
        assert "9876543210" not in resp.text

    def test_null_name_for_new_customer_is_400(self, client):
        resp = client.post("/api/customers", json={"name": None, "phoneNumber": "9876543210"})
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Please enter your name and a valid phone number"}

    def test_returning_customer_without_name(self, client):
        first = _register(client).json()
        for name in ("", None):
            resp = client.post("/api/customers", json={"name": name, "phoneNumber": "9876543210"})
            assert resp.status_code == 201
            assert resp.json()["_id"] == first["_id"]
            assert resp.json()["name"] == "Asha"

    def test_non_object_body_is_400(self, client):
        resp = client.post("/api/customers", json=["Asha", "9876543210"])
        assert resp.status_code == 400

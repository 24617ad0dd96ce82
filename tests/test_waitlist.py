import uuid

import pytest

from models import User


def _join(client, name="Priya Shah", phone="9811111111", email="priya@example.com"):
    return client.post("/api/waitlist/join", json={"name": name, "phone": phone, "email": email})


@pytest.fixture
def admin_headers(make_user, auth_header):
    return auth_header(make_user(role="admin"))


def test_count_starts_at_base(client):
    response = client.get("/api/waitlist/count")
    assert response.status_code == 200
    assert response.json()["data"] == {"count": 562}


def test_join_creates_unverified_waitlisted_user(client, db):
    response = _join(client)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Successfully joined the waitlist"
    user = body["data"]["user"]
    assert user["phone"] == "9811111111"
    assert user["isWaitlisted"] is True

    stored = db.query(User).filter(User.email == "priya@example.com").one()
    assert stored.verified is False
    assert stored.role == "user"
    assert stored.username.startswith("priya_shah_")

    assert client.get("/api/waitlist/count").json()["data"]["count"] == 563

    _join(client, name="Rahul Mehta", phone="9822222222", email="rahul@example.com")
    assert client.get("/api/waitlist/count").json()["data"]["count"] == 564


def test_duplicate_join_is_not_an_error(client):
    _join(client)

    for body in ({"email": "other@example.com"}, {"phone": "9833333333"}):
        response = _join(client, **body)
        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["message"] == "You are already on the waitlist."

    assert client.get("/api/waitlist/count").json()["data"]["count"] == 563


def test_join_validation(client):
    assert _join(client, phone="12345").status_code == 400
    assert _join(client, email="not-an-email").status_code == 400
    assert _join(client, name="P").status_code == 400


def test_admin_routes_require_admin(client, make_user, auth_header):
    assert client.get("/api/waitlist/admin/users").status_code == 401
    response = client.get("/api/waitlist/admin/users", headers=auth_header(make_user()))
    assert response.status_code == 403


def test_admin_list_search_filter_and_sort(client, admin_headers):
    _join(client, name="Priya Shah", phone="9811111111", email="priya@example.com")
    _join(client, name="Rahul Mehta", phone="9822222222", email="rahul@example.com")

    data = client.get("/api/waitlist/admin/users", headers=admin_headers).json()["data"]
    # admins are never listed
    assert data["total"] == 2

    data = client.get("/api/waitlist/admin/users", params={"search": "RAHUL"}, headers=admin_headers).json()["data"]
    assert [u["name"] for u in data["users"]] == ["Rahul Mehta"]

    params = {"sortBy": "name", "sortOrder": "asc"}
    data = client.get("/api/waitlist/admin/users", params=params, headers=admin_headers).json()["data"]
    assert [u["name"] for u in data["users"]] == ["Priya Shah", "Rahul Mehta"]

    params = {"sortBy": "name", "sortOrder": "asc", "limit": 1, "offset": 1}
    data = client.get("/api/waitlist/admin/users", params=params, headers=admin_headers).json()["data"]
    assert [u["name"] for u in data["users"]] == ["Rahul Mehta"]
    assert data["total"] == 2

    data = client.get("/api/waitlist/admin/users", params={"verified": "true"}, headers=admin_headers).json()["data"]
    assert data["users"] == []

    response = client.get("/api/waitlist/admin/users", params={"sortBy": "password"}, headers=admin_headers)
    assert response.status_code == 400


def test_admin_update_user(client, admin_headers):
    first = _join(client).json()["data"]["user"]
    _join(client, name="Rahul Mehta", phone="9822222222", email="rahul@example.com")

    response = client.put(f"/api/waitlist/admin/users/{first['id']}", json={"email": "rahul@example.com"},
                          headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Email is already taken"

    response = client.put(f"/api/waitlist/admin/users/{first['id']}", json={"phone": "9822222222"},
                          headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Phone number is already taken"

    response = client.put(f"/api/waitlist/admin/users/{first['id']}",
                          json={"phone": "9844444444", "verified": True}, headers=admin_headers)
    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["phone"] == "9844444444"
    assert user["verified"] is True


def test_admin_get_and_delete_user(client, db, admin_headers):
    joined = _join(client).json()["data"]["user"]

    response = client.get(f"/api/waitlist/admin/users/{joined['id']}", headers=admin_headers)
    assert response.json()["data"]["user"]["email"] == "priya@example.com"

    assert client.delete(f"/api/waitlist/admin/users/{joined['id']}", headers=admin_headers).status_code == 200
    assert db.query(User).filter(User.email == "priya@example.com").first() is None
    assert client.get(f"/api/waitlist/admin/users/{joined['id']}", headers=admin_headers).status_code == 404
    assert client.delete(f"/api/waitlist/admin/users/{uuid.uuid4()}", headers=admin_headers).status_code == 404

"""Profile and location API tests."""

import uuid

from tests.conftest import auth_headers, new_user


def test_requires_auth(client):
    r = client.get("/profiles/me")
    assert r.status_code == 401


def test_invalid_token_rejected(client):
    r = client.get("/profiles/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_first_request_creates_profile(client):
    user_id = f"user-{uuid.uuid4().hex[:12]}"
    r = client.get("/profiles/me", headers=auth_headers(user_id))
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == user_id
    assert body["latitude"] is None


def test_update_profile_and_read_back(client):
    name = f"lifter_{uuid.uuid4().hex[:6]}"
    user_id, headers = new_user(client, full_name="Sam Lifter", username=name, country="US", city="NYC")
    other_id, other_headers = new_user(client)

    r = client.get(f"/profiles/{user_id}", headers=other_headers)
    assert r.status_code == 200
    assert r.json()["username"] == name
    assert r.json()["city"] == "NYC"


def test_username_must_be_unique(client):
    name = f"taken_{uuid.uuid4().hex[:6]}"
    new_user(client, username=name)
    _, headers = new_user(client)
    r = client.put("/profiles/me", headers=headers, json={"username": name})
    assert r.status_code == 409


def test_unknown_profile_404(client):
    _, headers = new_user(client)
    r = client.get("/profiles/nobody-here", headers=headers)
    assert r.status_code == 404


def test_post_location_overwrites(client):
    _, headers = new_user(client)
    r = client.post("/location", headers=headers, json={"latitude": 10.0, "longitude": 20.0, "country": "FR"})
    assert r.status_code == 200
    r = client.post("/location", headers=headers, json={"latitude": 11.5, "longitude": 21.5})
    assert r.status_code == 200
    body = r.json()
    assert body["latitude"] == 11.5
    assert body["longitude"] == 21.5
    assert body["country"] == "FR"
    assert body["location_updated_at"]


def test_location_bounds_validated(client):
    _, headers = new_user(client)
    r = client.post("/location", headers=headers, json={"latitude": 95.0, "longitude": 0.0})
    assert r.status_code == 422

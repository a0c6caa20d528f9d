"""Buddy-request pickup tests."""

import threading

from gymbuddy.core.errors import CapacityExceeded
from gymbuddy.services.pickup_service import claim
from gymbuddy.services.profile_service import get_or_create_profile
from tests.conftest import new_user


def _buddy_request(client, headers) -> int:
    r = client.post(
        "/posts",
        headers=headers,
        json={"post_type": "buddy_request", "content": "Leg day at 6pm, need a spotter"},
    )
    assert r.status_code == 201, r.json()
    return r.json()["id"]


def test_create_post_requires_content(client):
    _, headers = new_user(client)
    r = client.post("/posts", headers=headers, json={"post_type": "buddy_request"})
    assert r.status_code == 400


def test_pickup_notifies_owner(client):
    owner_id, owner_headers = new_user(client)
    claimant_id, claimant_headers = new_user(client, full_name="Casey")
    post_id = _buddy_request(client, owner_headers)

    r = client.post(f"/posts/{post_id}/pickups", headers=claimant_headers)
    assert r.status_code == 201
    assert r.json()["user_id"] == claimant_id

    pickups = client.get(f"/posts/{post_id}/pickups", headers=owner_headers).json()
    assert [p["user_id"] for p in pickups] == [claimant_id]
    assert pickups[0]["profile"]["full_name"] == "Casey"

    notes = client.get("/notifications", headers=owner_headers).json()
    assert notes[0]["type"] == "buddy_request_pickup"
    assert notes[0]["data"] == {"post_id": post_id, "user_id": claimant_id}


def test_sixth_pickup_rejected(client):
    _, owner_headers = new_user(client)
    post_id = _buddy_request(client, owner_headers)

    for _ in range(5):
        _, headers = new_user(client)
        assert client.post(f"/posts/{post_id}/pickups", headers=headers).status_code == 201

    _, late_headers = new_user(client)
    r = client.post(f"/posts/{post_id}/pickups", headers=late_headers)
    assert r.status_code == 409
    assert "maximum" in r.json()["detail"]

    assert len(client.get(f"/posts/{post_id}/pickups", headers=owner_headers).json()) == 5
    assert client.get(f"/posts/{post_id}", headers=owner_headers).json()["pickup_count"] == 5


def test_double_pickup_rejected(client):
    _, owner_headers = new_user(client)
    _, headers = new_user(client)
    post_id = _buddy_request(client, owner_headers)

    assert client.post(f"/posts/{post_id}/pickups", headers=headers).status_code == 201
    assert client.post(f"/posts/{post_id}/pickups", headers=headers).status_code == 409
    assert client.get(f"/posts/{post_id}", headers=owner_headers).json()["pickup_count"] == 1


def test_owner_cannot_pick_up_own_request(client):
    _, owner_headers = new_user(client)
    post_id = _buddy_request(client, owner_headers)
    assert client.post(f"/posts/{post_id}/pickups", headers=owner_headers).status_code == 403


def test_regular_post_cannot_be_picked_up(client):
    _, owner_headers = new_user(client)
    _, headers = new_user(client)
    post_id = client.post("/posts", headers=owner_headers, json={"content": "PR today"}).json()["id"]
    assert client.post(f"/posts/{post_id}/pickups", headers=headers).status_code == 409


def test_unknown_post_404(client):
    _, headers = new_user(client)
    assert client.post("/posts/999999/pickups", headers=headers).status_code == 404


def test_select_closes_the_request(client):
    _, owner_headers = new_user(client)
    first_id, first_headers = new_user(client)
    second_id, second_headers = new_user(client)
    post_id = _buddy_request(client, owner_headers)
    client.post(f"/posts/{post_id}/pickups", headers=first_headers)
    client.post(f"/posts/{post_id}/pickups", headers=second_headers)

    # Only the owner selects
    r = client.post(f"/posts/{post_id}/select", headers=first_headers, json={"user_id": first_id})
    assert r.status_code == 403

    r = client.post(f"/posts/{post_id}/select", headers=owner_headers, json={"user_id": second_id})
    assert r.status_code == 200
    assert r.json()["selected_buddy_id"] == second_id

    # Re-selecting the same claimant is a no-op; a different one conflicts
    r = client.post(f"/posts/{post_id}/select", headers=owner_headers, json={"user_id": second_id})
    assert r.status_code == 200
    r = client.post(f"/posts/{post_id}/select", headers=owner_headers, json={"user_id": first_id})
    assert r.status_code == 409

    _, late_headers = new_user(client)
    r = client.post(f"/posts/{post_id}/pickups", headers=late_headers)
    assert r.status_code == 409
    assert r.json()["detail"] == "A buddy has already been selected for this request"

    notes = client.get("/notifications", headers=second_headers).json()
    assert notes[0]["type"] == "buddy_selected"


def test_select_requires_a_claimant(client):
    _, owner_headers = new_user(client)
    outsider_id, _ = new_user(client)
    post_id = _buddy_request(client, owner_headers)

    r = client.post(f"/posts/{post_id}/select", headers=owner_headers, json={"user_id": outsider_id})
    assert r.status_code == 400


def test_concurrent_pickups_for_last_slot(client, session_factory):
    """Two users racing for the fifth slot: exactly one wins."""
    _, owner_headers = new_user(client)
    post_id = _buddy_request(client, owner_headers)
    for _ in range(4):
        _, headers = new_user(client)
        assert client.post(f"/posts/{post_id}/pickups", headers=headers).status_code == 201

    racers = [new_user(client)[0] for _ in range(2)]
    barrier = threading.Barrier(len(racers))
    outcomes: dict[str, str] = {}

    def race(user_id):
        db = session_factory()
        try:
            get_or_create_profile(db, user_id)
            barrier.wait()
            claim(db, post_id, user_id)
            outcomes[user_id] = "claimed"
        except CapacityExceeded:
            outcomes[user_id] = "full"
        finally:
            db.close()

    threads = [threading.Thread(target=race, args=(uid,)) for uid in racers]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes.values()) == ["claimed", "full"]
    pickups = client.get(f"/posts/{post_id}/pickups", headers=owner_headers).json()
    assert len(pickups) == 5
    assert client.get(f"/posts/{post_id}", headers=owner_headers).json()["pickup_count"] == 5

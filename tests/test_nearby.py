"""Nearby matcher tests."""

import uuid

import pytest
from sqlalchemy.exc import OperationalError

from gymbuddy.services import geo_service
from gymbuddy.services.geo_service import Candidate, haversine_km, matches_locale, rank_candidates
from tests.conftest import new_user


class _Requester:
    def __init__(self, country, city):
        self.country = country
        self.city = city


def test_rank_filters_by_locale_and_sorts_by_distance():
    requester = _Requester("US", "NYC")
    candidates = [
        Candidate(user_id="x", country="US", city="NYC", distance_km=5),
        Candidate(user_id="y", country="US", city="LA", distance_km=400),
        Candidate(user_id="z", country="CA", city="Toronto", distance_km=2),
        Candidate(user_id="w", country="US", city="NYC", distance_km=2),
    ]
    ranked = rank_candidates(requester, candidates)
    assert [c.user_id for c in ranked] == ["w", "x", "y"]
    assert [c.same_city for c in ranked] == [True, True, False]


def test_rank_keeps_input_order_for_equal_distances():
    requester = _Requester("US", None)
    candidates = [
        Candidate(user_id=uid, country="US", city=None, distance_km=10) for uid in ("b", "a", "c")
    ]
    assert [c.user_id for c in rank_candidates(requester, candidates)] == ["b", "a", "c"]


def test_locale_clauses_need_values():
    assert not matches_locale(_Requester(None, None), _Requester(None, None))
    assert not matches_locale(_Requester(None, "NYC"), _Requester(None, "NYC"))
    assert matches_locale(_Requester("US", None), _Requester("US", "Boston"))


def test_haversine_known_distance():
    # London to Paris is roughly 344 km
    assert haversine_km(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(344, abs=5)
    assert haversine_km(10.0, 10.0, 10.0, 10.0) == 0


def _located_user(client, country, city, lat, lng):
    user_id, headers = new_user(client)
    r = client.post(
        "/location",
        headers=headers,
        json={"latitude": lat, "longitude": lng, "country": country, "city": city},
    )
    assert r.status_code == 200
    return user_id, headers


def test_nearby_same_country_closest_first(client):
    # Unique country code keeps users from other tests out of the result
    country = f"US-{uuid.uuid4().hex[:6]}"
    _, headers = _located_user(client, country, "NYC", 40.7128, -74.0060)
    near_id, _ = _located_user(client, country, "NYC", 40.7308, -74.0060)
    far_id, _ = _located_user(client, country, "Boston", 42.3601, -71.0589)
    _located_user(client, f"CA-{uuid.uuid4().hex[:6]}", "Toronto", 40.7200, -74.0060)

    r = client.get("/buddies/nearby", headers=headers)
    assert r.status_code == 200
    rows = r.json()
    assert [row["nearby_user_id"] for row in rows] == [near_id, far_id]
    assert rows[0]["same_city"] is True
    assert rows[1]["same_city"] is False
    assert rows[0]["distance_km"] == pytest.approx(2.0, abs=0.1)
    assert rows[1]["distance_km"] == pytest.approx(306, abs=5)
    assert rows[0]["relationship_status"] is None


def test_nearby_respects_limit_and_query_coordinates(client):
    country = f"DE-{uuid.uuid4().hex[:6]}"
    _, headers = _located_user(client, country, "Berlin", 52.52, 13.405)
    ids = [_located_user(client, country, "Berlin", 52.52 + i * 0.01, 13.405)[0] for i in range(1, 4)]

    rows = client.get("/buddies/nearby", headers=headers, params={"limit": 2}).json()
    assert [row["nearby_user_id"] for row in rows] == ids[:2]

    # Query coordinates override the stored location
    rows = client.get(
        "/buddies/nearby",
        headers=headers,
        params={"latitude": 52.55, "longitude": 13.405},
    ).json()
    assert rows[0]["nearby_user_id"] == ids[2]


def test_nearby_without_location_400(client):
    _, headers = new_user(client, country="US", city="NYC")
    r = client.get("/buddies/nearby", headers=headers)
    assert r.status_code == 400


def test_nearby_store_failure_503(client, monkeypatch):
    _, headers = _located_user(client, "US", "NYC", 40.7128, -74.0060)

    def broken(*args, **kwargs):
        raise OperationalError("SELECT profiles", {}, Exception("connection refused"))

    monkeypatch.setattr(geo_service, "_load_candidates", broken)
    r = client.get("/buddies/nearby", headers=headers)
    assert r.status_code == 503


def test_nearby_excludes_blocked_and_reports_status(client):
    country = f"JP-{uuid.uuid4().hex[:6]}"
    a_id, a_headers = _located_user(client, country, "Tokyo", 35.6762, 139.6503)
    b_id, b_headers = _located_user(client, country, "Tokyo", 35.6800, 139.6503)
    c_id, _ = _located_user(client, country, "Tokyo", 35.6900, 139.6503)

    client.post("/buddies/requests", headers=a_headers, json={"buddy_id": c_id})
    rows = client.get("/buddies/nearby", headers=b_headers).json()
    assert {row["nearby_user_id"] for row in rows} == {a_id, c_id}

    block = client.post("/buddies/requests", headers=b_headers, json={"buddy_id": a_id}).json()["id"]
    client.post(f"/buddies/{block}/respond", headers=a_headers, json={"decision": "block"})

    rows = client.get("/buddies/nearby", headers=a_headers).json()
    assert [row["nearby_user_id"] for row in rows] == [c_id]
    assert rows[0]["relationship_status"] == "pending"

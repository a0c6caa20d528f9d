"""Chat API tests."""

from tests.conftest import make_buddies, new_user


def test_only_buddies_can_message(client):
    _, a_headers = new_user(client)
    b_id, b_headers = new_user(client)
    r = client.post(f"/chat/{b_id}/messages", headers=a_headers, json={"content": "hey"})
    assert r.status_code == 403

    # Pending is not enough
    client.post("/buddies/requests", headers=a_headers, json={"buddy_id": b_id})
    r = client.post(f"/chat/{b_id}/messages", headers=a_headers, json={"content": "hey"})
    assert r.status_code == 403


def test_conversation_oldest_first(client):
    a_id, a_headers = new_user(client)
    b_id, b_headers = new_user(client)
    make_buddies(client, a_headers, b_id, b_headers)

    client.post(f"/chat/{b_id}/messages", headers=a_headers, json={"content": "squat at 7?"})
    client.post(f"/chat/{a_id}/messages", headers=b_headers, json={"content": "make it 8"})

    msgs = client.get(f"/chat/{a_id}/messages", headers=b_headers).json()
    assert [m["content"] for m in msgs] == ["squat at 7?", "make it 8"]
    assert msgs[0]["sender_id"] == a_id


def test_blank_message_rejected(client):
    _, a_headers = new_user(client)
    b_id, b_headers = new_user(client)
    make_buddies(client, a_headers, b_id, b_headers)
    r = client.post(f"/chat/{b_id}/messages", headers=a_headers, json={"content": "   "})
    assert r.status_code == 400


def test_roster_shows_last_message_and_unread(client):
    a_id, a_headers = new_user(client, full_name="Alex")
    b_id, b_headers = new_user(client, full_name="Blair")
    c_id, c_headers = new_user(client, full_name="Cam")
    make_buddies(client, a_headers, b_id, b_headers)
    make_buddies(client, c_headers, a_id, a_headers)

    client.post(f"/chat/{a_id}/messages", headers=b_headers, json={"content": "first"})
    client.post(f"/chat/{a_id}/messages", headers=b_headers, json={"content": "second"})

    roster = client.get("/chat/roster", headers=a_headers).json()
    assert [u["id"] for u in roster] == [b_id, c_id]
    assert roster[0]["last_message"] == "second"
    assert roster[0]["unread_count"] == 2
    assert roster[1]["last_message"] is None
    assert roster[1]["unread_count"] == 0

    r = client.post(f"/chat/{b_id}/read", headers=a_headers)
    assert r.json() == {"marked_read": 2}
    roster = client.get("/chat/roster", headers=a_headers).json()
    assert roster[0]["unread_count"] == 0


def test_roster_empty_without_buddies(client):
    _, headers = new_user(client)
    assert client.get("/chat/roster", headers=headers).json() == []

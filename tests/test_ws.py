"""WebSocket realtime feed tests."""

import pytest
from starlette.websockets import WebSocketDisconnect

from gymbuddy.core.change_feed import RowFilter, change_feed
from gymbuddy.core.security import create_access_token
from tests.conftest import new_user


def test_missing_token_closes(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws") as ws:
            ws.receive_text()
    assert exc.value.code == 4001


def test_invalid_token_closes(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws?token=garbage") as ws:
            ws.receive_text()
    assert exc.value.code == 4003


def test_ping_and_subscriptions(client):
    user_id, _ = new_user(client)
    token = create_access_token(user_id)
    with client.websocket_connect(f"/ws?token={token}") as ws:
        ws.send_text("ping")
        assert ws.receive_json() == {"event": "pong"}

        ws.send_json({"action": "subscribe", "table": "buddy_request_pickups", "filter": {"post_id": 42}})
        reply = ws.receive_json()
        assert reply["event"] == "subscribed"
        assert change_feed.refcount("buddy_request_pickups", RowFilter("post_id", 42)) == 1

        ws.send_json({"action": "unsubscribe", "table": "buddy_request_pickups", "filter": {"post_id": 42}})
        assert ws.receive_json()["event"] == "unsubscribed"
        assert change_feed.refcount("buddy_request_pickups", RowFilter("post_id", 42)) == 0

        # Other users' notifications are off limits
        ws.send_json({"action": "subscribe", "table": "notifications", "filter": {"user_id": "someone-else"}})
        assert ws.receive_json()["event"] == "error"

    # Default subscriptions are released on disconnect
    assert change_feed.refcount("notifications", RowFilter("user_id", user_id)) == 0


def test_buddy_request_pushes_invalidation(client):
    b_id, _ = new_user(client)
    _, a_headers = new_user(client)
    token = create_access_token(b_id)
    with client.websocket_connect(f"/ws?token={token}") as ws:
        ws.send_text("ping")
        assert ws.receive_json() == {"event": "pong"}

        r = client.post("/buddies/requests", headers=a_headers, json={"buddy_id": b_id})
        assert r.status_code == 200

        events = {ws.receive_json()["event"] for _ in range(2)}
        assert events == {"buddies.INSERT", "notifications.INSERT"}

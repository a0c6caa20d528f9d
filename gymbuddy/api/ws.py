"""WebSocket endpoint with JWT auth.

Clients connect with ?token=<jwt> and are subscribed to their own buddies,
notifications, messages and posts. Extra keys can be added or dropped with

    {"action": "subscribe", "table": "buddy_request_pickups", "filter": {"post_id": 3}}

Every matching change is pushed as {"event": "<table>.<TYPE>", "data": {...}};
clients re-fetch the affected view on receipt.
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from gymbuddy.core.change_feed import RowFilter
from gymbuddy.core.deps import user_id_from_token
from gymbuddy.core.ws_manager import RealtimeConnection, ws_manager

logger = logging.getLogger(__name__)

router = APIRouter()

SUBSCRIBABLE_TABLES = {"buddies", "buddy_request_pickups", "posts", "notifications", "messages", "profiles"}
# Tables whose rows belong to one recipient; filters on them must name the caller
PRIVATE_TABLES = {"notifications": "user_id", "messages": "receiver_id"}


def _parse_key(message: dict, user_id: str) -> tuple[str, RowFilter | None]:
    table = message.get("table")
    if table not in SUBSCRIBABLE_TABLES:
        raise ValueError(f"Unknown table {table!r}")
    raw_filter = message.get("filter") or {}
    if not isinstance(raw_filter, dict) or len(raw_filter) > 1:
        raise ValueError("filter must be an object with at most one column")
    row_filter = None
    if raw_filter:
        (column, value), = raw_filter.items()
        row_filter = RowFilter(str(column), value)
    private_column = PRIVATE_TABLES.get(table)
    if private_column and (row_filter is None or row_filter != RowFilter(private_column, user_id)):
        raise ValueError(f"{table} can only be filtered by {private_column}={user_id}")
    return table, row_filter


async def _handle_message(conn: RealtimeConnection, text: str) -> None:
    if text == "ping":
        await conn.websocket.send_text('{"event":"pong"}')
        return
    try:
        message = json.loads(text)
        if not isinstance(message, dict):
            raise ValueError("message must be an object")
        action = message.get("action")
        table, row_filter = _parse_key(message, conn.user_id)
    except ValueError as e:
        await conn.send("error", {"detail": str(e)})
        return

    if action == "subscribe":
        conn.subscribe(table, row_filter)
    elif action == "unsubscribe":
        conn.unsubscribe(table, row_filter)
    else:
        await conn.send("error", {"detail": f"Unknown action {action!r}"})
        return
    await conn.send(f"{action}d", {"table": table, "filter": message.get("filter")})


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Realtime invalidation feed for the authenticated user."""
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4001, reason="Missing token")
        return

    user_id = user_id_from_token(token)
    if user_id is None:
        await websocket.close(code=4003, reason="Invalid or expired token")
        return

    conn = await ws_manager.connect(websocket, user_id)
    try:
        while True:
            data = await websocket.receive_text()
            await _handle_message(conn, data)
    except WebSocketDisconnect:
        pass
    finally:
        ws_manager.disconnect(conn)

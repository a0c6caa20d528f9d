"""WebSocket connection manager relaying change-feed events to clients."""

import json
import logging
from typing import Any

from fastapi import WebSocket

from gymbuddy.core.change_feed import ChangeEvent, ChangeFeed, RowFilter, Subscription, change_feed

logger = logging.getLogger(__name__)


def default_keys(user_id: str) -> list[tuple[str, RowFilter]]:
    """Change-feed keys every connected user listens on."""
    return [
        ("buddies", RowFilter("user_id", user_id)),
        ("buddies", RowFilter("buddy_id", user_id)),
        ("notifications", RowFilter("user_id", user_id)),
        ("messages", RowFilter("receiver_id", user_id)),
        ("posts", RowFilter("user_id", user_id)),
    ]


class RealtimeConnection:
    """One websocket and the change-feed subscriptions it holds."""

    def __init__(self, websocket: WebSocket, user_id: str, feed: ChangeFeed) -> None:
        self.websocket = websocket
        self.user_id = user_id
        self._feed = feed
        self._subscriptions: dict[tuple[str, RowFilter | None], Subscription] = {}

    async def _relay(self, event: ChangeEvent) -> None:
        await self.send(event.name, {"table": event.table, "type": event.event_type})

    async def send(self, event: str, data: Any) -> None:
        payload = json.dumps({"event": event, "data": data}, default=str)
        await self.websocket.send_text(payload)

    def subscribe(self, table: str, row_filter: RowFilter | None = None) -> bool:
        """Subscribe to a key. Returns False if already subscribed."""
        key = (table, row_filter)
        if key in self._subscriptions:
            return False
        self._subscriptions[key] = self._feed.subscribe(table, self._relay, row_filter)
        return True

    def unsubscribe(self, table: str, row_filter: RowFilter | None = None) -> bool:
        sub = self._subscriptions.pop((table, row_filter), None)
        if sub is None:
            return False
        self._feed.unsubscribe(sub)
        return True

    def close(self) -> None:
        for sub in self._subscriptions.values():
            self._feed.unsubscribe(sub)
        self._subscriptions.clear()


class ConnectionManager:
    """Tracks active WebSocket connections keyed by user_id."""

    def __init__(self, feed: ChangeFeed) -> None:
        self._feed = feed
        # user_id -> active connections
        self._connections: dict[str, set[RealtimeConnection]] = {}

    async def connect(self, websocket: WebSocket, user_id: str) -> RealtimeConnection:
        await websocket.accept()
        conn = RealtimeConnection(websocket, user_id, self._feed)
        for table, row_filter in default_keys(user_id):
            conn.subscribe(table, row_filter)
        self._connections.setdefault(user_id, set()).add(conn)
        logger.info("WS connected: user=%s (total=%s)", user_id, self.total_connections)
        return conn

    def disconnect(self, conn: RealtimeConnection) -> None:
        conn.close()
        conns = self._connections.get(conn.user_id)
        if conns:
            conns.discard(conn)
            if not conns:
                del self._connections[conn.user_id]
        logger.info("WS disconnected: user=%s (total=%s)", conn.user_id, self.total_connections)

    @property
    def total_connections(self) -> int:
        return sum(len(c) for c in self._connections.values())


# Singleton instance used across the app
ws_manager = ConnectionManager(change_feed)

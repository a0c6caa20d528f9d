"""In-process change feed: row-level change events fanned out to subscribers.

Services publish a ChangeEvent after every committed write. Subscribers register
against a (table, RowFilter) key; subscriptions sharing a key share one channel,
and the channel is dropped when its last subscription is released. Payloads are
invalidation signals: consumers re-query the store instead of trusting them.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Union

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
EVENT_TYPES = (INSERT, UPDATE, DELETE)

Handler = Callable[["ChangeEvent"], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event_type: str  # INSERT | UPDATE | DELETE
    new: dict[str, Any] | None = None
    old: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type {self.event_type!r}")

    @property
    def name(self) -> str:
        return f"{self.table}.{self.event_type}"


@dataclass(frozen=True)
class RowFilter:
    """Equality filter on one column, like ``user_id=eq.<id>``."""

    column: str
    value: Any

    def matches(self, event: ChangeEvent) -> bool:
        for row in (event.new, event.old):
            if row is not None and row.get(self.column) == self.value:
                return True
        return False


ChannelKey = tuple[str, Union[RowFilter, None]]


@dataclass
class Subscription:
    id: int
    key: ChannelKey
    handler: Handler


@dataclass
class _Channel:
    key: ChannelKey
    handlers: dict[int, Handler] = field(default_factory=dict)

    @property
    def refcount(self) -> int:
        return len(self.handlers)

    def matches(self, event: ChangeEvent) -> bool:
        table, row_filter = self.key
        if table != event.table:
            return False
        return row_filter is None or row_filter.matches(event)


class ChangeFeed:
    """Publish/subscribe hub for table change events."""

    def __init__(self) -> None:
        self._channels: dict[ChannelKey, _Channel] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None

    def bind_loop(self, loop: asyncio.AbstractEventLoop | None) -> None:
        """Set the event loop coroutine handlers are scheduled on."""
        self._loop = loop

    def subscribe(
        self,
        table: str,
        handler: Handler,
        row_filter: RowFilter | None = None,
    ) -> Subscription:
        key: ChannelKey = (table, row_filter)
        with self._lock:
            channel = self._channels.get(key)
            if channel is None:
                channel = self._channels[key] = _Channel(key=key)
                logger.debug("Channel opened: %s", key)
            sub = Subscription(id=next(self._ids), key=key, handler=handler)
            channel.handlers[sub.id] = handler
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            channel = self._channels.get(subscription.key)
            if channel is None:
                return
            channel.handlers.pop(subscription.id, None)
            if channel.refcount == 0:
                del self._channels[subscription.key]
                logger.debug("Channel closed: %s", subscription.key)

    def refcount(self, table: str, row_filter: RowFilter | None = None) -> int:
        with self._lock:
            channel = self._channels.get((table, row_filter))
            return channel.refcount if channel else 0

    @property
    def channel_count(self) -> int:
        with self._lock:
            return len(self._channels)

    def publish(self, event: ChangeEvent) -> int:
        """Deliver event to every matching subscription. Returns the number of handlers invoked.

        Plain handlers run inline, before publish returns. Coroutine handlers are
        scheduled on the bound loop and are dropped when no loop is running.
        Handler failures are logged and do not reach the publisher.
        """
        with self._lock:
            handlers = [
                h
                for channel in self._channels.values()
                if channel.matches(event)
                for h in channel.handlers.values()
            ]

        delivered = 0
        for handler in handlers:
            if inspect.iscoroutinefunction(handler):
                if self._schedule(handler, event):
                    delivered += 1
                continue
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception("Change handler failed for %s", event.name)
        return delivered

    def _schedule(self, handler: Handler, event: ChangeEvent) -> bool:
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("No event loop bound; dropping async delivery of %s", event.name)
            return False
        future = asyncio.run_coroutine_threadsafe(handler(event), loop)
        future.add_done_callback(lambda f: _log_failure(f, event))
        return True


def _log_failure(future, event: ChangeEvent) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("Async change handler failed for %s: %s", event.name, exc)


# Singleton instance used across the app
change_feed = ChangeFeed()

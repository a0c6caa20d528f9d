"""gymbuddy FastAPI application."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from gymbuddy.api import buddies, chat, health, notifications, posts, profiles, ws
from gymbuddy.core.change_feed import change_feed
from gymbuddy.core.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Sync endpoints publish from worker threads; async handlers run on this loop
    change_feed.bind_loop(asyncio.get_running_loop())
    yield
    change_feed.bind_loop(None)


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(profiles.router)
app.include_router(buddies.router)
app.include_router(posts.router)
app.include_router(notifications.router)
app.include_router(chat.router)
app.include_router(ws.router)

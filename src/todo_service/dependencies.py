from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from fastapi import Request

from .context import RequestContext
from .service import TodoService
from .settings import Settings

logger = logging.getLogger(__name__)

# Seconds between checks for a client that went away mid-request.
_DISCONNECT_POLL_INTERVAL = 0.25


async def _watch_disconnect(request: Request, ctx: RequestContext) -> None:
    while not ctx.cancelled:
        if await request.is_disconnected():
            logger.info("Client disconnected from %s %s", request.method, request.url.path)
            ctx.cancel()
            return
        await asyncio.sleep(_DISCONNECT_POLL_INTERVAL)


# PUBLIC_INTERFACE
def get_settings_dep(request: Request) -> Settings:
    """Return the settings the running app was built with."""
    return request.app.state.settings


# PUBLIC_INTERFACE
def get_todo_service(request: Request) -> TodoService:
    """Return the TodoService instance injected into the app at construction."""
    return request.app.state.todo_service


# PUBLIC_INTERFACE
async def get_request_context(request: Request) -> AsyncIterator[RequestContext]:
    """
    Yield a cancellation token for the current request.

    The token expires after REQUEST_TIMEOUT_SECONDS and is cancelled early if
    the client disconnects while the endpoint is still working.
    """
    settings: Settings = request.app.state.settings
    ctx = RequestContext(timeout=settings.request_timeout_seconds or None)
    watcher = asyncio.create_task(_watch_disconnect(request, ctx))
    try:
        yield ctx
    finally:
        watcher.cancel()

"""Bridge live-feed subscriptions onto WebSocket connections."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Sequence

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from campus_crew.services.live_feed import Subscription

logger = logging.getLogger(__name__)

Deliver = Callable[[Sequence[BaseModel]], None]


async def _forward(websocket: WebSocket, queue: asyncio.Queue[Sequence[BaseModel]]) -> None:
    while True:
        snapshot = await queue.get()
        await websocket.send_json([item.model_dump(mode="json") for item in snapshot])


async def stream_snapshots(
    websocket: WebSocket,
    subscribe: Callable[[Deliver], Subscription],
) -> None:
    """Send every snapshot of a feed to an accepted WebSocket until it closes.

    The subscription is held for the lifetime of the connection and released
    exactly once when the client disconnects.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[Sequence[BaseModel]] = asyncio.Queue()

    def deliver(snapshot: Sequence[BaseModel]) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, snapshot)

    with subscribe(deliver) as subscription:
        forwarder = asyncio.create_task(_forward(websocket, queue))
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.debug("Client left feed %s", subscription.topic)
        finally:
            forwarder.cancel()
            with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect):
                await forwarder

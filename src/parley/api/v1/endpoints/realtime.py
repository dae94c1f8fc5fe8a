# src/parley/api/v1/endpoints/realtime.py
"""WebSocket endpoint streaming committed changes to connected clients."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from parley.api.v1.dependencies import RegistryDep, SessionDep, resolve_user_id
from parley.core.errors import UnauthorizedError
from parley.services.notifier import Connection

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)

# Application-defined close code mirroring HTTP 401.
WS_CLOSE_UNAUTHORIZED = 4401


async def _pump(websocket: WebSocket, connection: Connection) -> None:
    """Drain the connection's queue; the only writer to this socket."""
    while True:
        frame = await connection.queue.get()
        await websocket.send_json(frame)


@router.websocket("/ws")
async def realtime(websocket: WebSocket, db: SessionDep, registry: RegistryDep) -> None:
    """Authenticate with ``?token=`` and receive events until disconnect.

    Clients may send ``ping`` text frames; each is answered with a
    ``{"type": "pong"}`` frame.
    """
    try:
        user_id = resolve_user_id(websocket.query_params.get("token"), db)
    except UnauthorizedError:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return
    finally:
        db.close()

    connection = await registry.register(user_id)
    sender: asyncio.Task[None] | None = None
    try:
        await websocket.accept()
        connection.offer({"type": "ready", "connectionId": connection.id})
        sender = asyncio.create_task(_pump(websocket, connection))
        while True:
            text = await websocket.receive_text()
            if text.strip().lower() == "ping":
                connection.offer({"type": "pong"})
    except WebSocketDisconnect:
        logger.debug("Connection %d closed by client", connection.id)
    finally:
        if sender is not None:
            sender.cancel()
            await asyncio.gather(sender, return_exceptions=True)
        await registry.unregister(connection.id)

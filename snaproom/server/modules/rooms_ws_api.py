from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from snaproom.coord import Connection, CoordinatorHub
from snaproom.logging_config import bind_log_context, unbind_log_context
from snaproom.server.core.coordinator import get_hub

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["Rooms"])

WRITER_GRACE_SECONDS = 1.0


def _dumps(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


async def _pump(websocket: WebSocket, connection: Connection, hub: CoordinatorHub) -> None:
    async def _send(frame: Dict[str, Any]) -> None:
        await websocket.send_text(_dumps(frame))

    try:
        await connection.outbox.drain(_send)
    except Exception as exc:
        LOGGER.warning("Socket write failed for %s: %s", connection.identity, exc)
        hub.disconnect(connection.identity)
        try:
            await websocket.close()
        except Exception:
            LOGGER.debug("Socket already closed for %s", connection.identity)


@router.websocket("/ws")
async def rooms_ws(websocket: WebSocket) -> None:
    await websocket.accept()
    hub = get_hub()
    connection = hub.connect()
    identity = connection.identity
    token = bind_log_context(connection=identity)
    writer = asyncio.create_task(_pump(websocket, connection, hub))
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code") or 1000)
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue
            frame_token = bind_log_context(room=hub.registry.lookup(identity))
            try:
                hub.handle_text(identity, raw)
            finally:
                unbind_log_context(frame_token)
    except WebSocketDisconnect:
        LOGGER.info("Socket closed for %s", identity)
    except Exception as exc:
        LOGGER.warning("Socket error (%s): %s", identity, exc, exc_info=True)
    finally:
        # Cleanup must not sit behind an await: the task may already be cancelled.
        hub.disconnect(identity)
        unbind_log_context(token)
        try:
            await asyncio.wait_for(writer, timeout=WRITER_GRACE_SECONDS)
        except asyncio.TimeoutError:
            LOGGER.debug("Writer for %s did not flush in time", identity)

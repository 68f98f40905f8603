"""WebSocket endpoint for live fetch progress.

Clients connect to ``/ws/progress`` (optionally ``?run_id=``) and receive
every progress event emitted after they connected, as JSON.

Auth is via ``api_key`` query parameter since browsers cannot set
custom headers on WebSocket upgrade requests.
"""

import asyncio
import json
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from newsforge.api.auth import is_valid_api_key
from newsforge.api.dependencies import get_progress_broadcaster
from newsforge.progress.schemas import ProgressEvent

logger = logging.getLogger(__name__)

router = APIRouter()


async def _forward_events(
    ws: WebSocket, queue: asyncio.Queue[ProgressEvent], run_id: int | None
) -> None:
    while True:
        event = await queue.get()
        if run_id is not None and event.run_id != run_id:
            continue
        await ws.send_text(event.model_dump_json())


async def _read_client(ws: WebSocket) -> None:
    """Answer client pings until the client goes away."""
    while True:
        try:
            raw = await ws.receive_text()
        except WebSocketDisconnect:
            return
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError:
            continue
        if isinstance(msg, dict) and msg.get("type") == "ping":
            await ws.send_text(json.dumps({"type": "pong"}))


@router.websocket("/ws/progress")
async def ws_progress(
    ws: WebSocket,
    run_id: int | None = Query(default=None),
    api_key: str | None = Query(default=None),
) -> None:
    """Stream progress events.

    Query parameters:
        run_id: Only forward events for this run.
        api_key: API key for authentication.
    """
    if not is_valid_api_key(api_key):
        await ws.close(code=1008, reason="Invalid or missing API key")
        return

    broadcaster = get_progress_broadcaster()
    queue = broadcaster.subscribe()
    if queue is None:
        await ws.close(code=1008, reason="Max connections reached")
        return

    await ws.accept()

    sender = asyncio.create_task(_forward_events(ws, queue, run_id))
    reader = asyncio.create_task(_read_client(ws))
    try:
        done, pending = await asyncio.wait({sender, reader}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.warning("Progress stream ended with error: %s", task.exception())
    finally:
        broadcaster.unsubscribe(queue)

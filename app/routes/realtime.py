"""
Real-time channel. Clients receive {"type": "fileUpdate", "files": [...]}
after every successful upload or delete. Nothing is sent on connect; clients
fetch the initial listing from GET /files.

No origin check is made here, unlike the HTTP API: any client on the
network may listen for updates.
"""
from fastapi import APIRouter, Depends, WebSocket
from starlette.websockets import WebSocketDisconnect
import anyio
import logging

from app.core.activity_logger import get_client_ip
from app.core.notifier import ChangeNotifier, Subscriber, get_notifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


async def _forward_updates(websocket: WebSocket, subscriber: Subscriber, cancel_scope: anyio.CancelScope):
    try:
        while True:
            message = await subscriber.get()
            try:
                await websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.info(f"Dropping real-time client after failed send: {e!r}")
                return
    finally:
        cancel_scope.cancel()


async def _wait_for_disconnect(websocket: WebSocket, cancel_scope: anyio.CancelScope):
    # Inbound frames carry no meaning; they are read only to notice the close
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.debug(f"Real-time client receive ended: {e!r}")
    finally:
        cancel_scope.cancel()


async def file_updates(websocket: WebSocket, notifier: ChangeNotifier = Depends(get_notifier)):
    # Attach before accepting so no update is missed once the client sees the handshake
    subscriber = notifier.attach()
    client_ip = get_client_ip(websocket) or "unknown"
    try:
        await websocket.accept()
        logger.info(f"WebSocket client connected from {client_ip} ({notifier.connection_count} open)")

        # Whichever side finishes first ends the connection for both
        async with anyio.create_task_group() as tg:
            tg.start_soon(_forward_updates, websocket, subscriber, tg.cancel_scope)
            tg.start_soon(_wait_for_disconnect, websocket, tg.cancel_scope)
    finally:
        notifier.detach(subscriber)
        logger.info(f"WebSocket client {client_ip} disconnected ({notifier.connection_count} open)")


router.add_api_websocket_route("/ws", file_updates)

# privchat/services/broadcast.py

import asyncio
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)

# Topics
MESSAGE_CREATED = "message"
MESSAGE_EDITED = "message-edited"
MESSAGE_DELETED = "message-deleted"


class Broadcaster:
    """
    Fan-out of chat events to every connected WebSocket.

    publish() is fire-and-forget and safe to call from the threadpool that
    runs sync endpoints: sends are scheduled on the event loop that owns
    the sockets.
    """

    def __init__(self):
        self._connections: set[WebSocket] = set()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._loop = asyncio.get_running_loop()
        self._connections.add(websocket)
        logger.info("Client connected (%d open)", len(self._connections))

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        logger.info("Client disconnected (%d open)", len(self._connections))

    async def _send_all(self, event: dict) -> None:
        for websocket in list(self._connections):
            try:
                await websocket.send_json(event)
            except Exception as e:
                logger.warning("Dropping client after failed send: %s", e)
                self.disconnect(websocket)

    def publish(self, topic: str, payload) -> None:
        if not self._connections or self._loop is None or self._loop.is_closed():
            return

        event = {"event": topic, "data": payload}
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._loop.create_task(self._send_all(event))
        else:
            asyncio.run_coroutine_threadsafe(self._send_all(event), self._loop)


broadcaster = Broadcaster()


def get_broadcaster() -> Broadcaster:
    return broadcaster

import asyncio
from typing import Any, Dict, Optional
from fastapi import WebSocket
from schemas.signaling import Envelope
from logging_config import get_logger

logger = get_logger(__name__)

# Put on an outbox to stop its pump
_STOP = object()


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class ConnectionManager:
    """Outbound side of the transport: one asyncio queue per live WebSocket.

    emit() only enqueues, so the signaling router never waits on a socket. Each
    connection's pump() task drains its queue into the WebSocket in order.
    emit() may be called from any thread; off the owning loop it hands the
    message over with call_soon_threadsafe.
    """

    def __init__(self):
        # Format: {connection_id: outbox}
        self._outboxes: Dict[str, asyncio.Queue] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def register(self, connection_id: str) -> asyncio.Queue:
        self._loop = asyncio.get_running_loop()
        outbox = asyncio.Queue()
        self._outboxes[connection_id] = outbox
        logger.debug(f"Registered outbox for connection {connection_id} ({len(self._outboxes)} live)")
        return outbox

    def unregister(self, connection_id: str):
        outbox = self._outboxes.pop(connection_id, None)
        if outbox is not None:
            self._put(outbox, _STOP)
            logger.debug(f"Unregistered outbox for connection {connection_id} ({len(self._outboxes)} live)")

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._outboxes

    def __len__(self) -> int:
        return len(self._outboxes)

    def emit(self, connection_id: str, event: str, payload: Any) -> None:
        outbox = self._outboxes.get(connection_id)
        if outbox is None:
            logger.debug(f"Dropped {event} for unknown connection {connection_id}")
            return
        self._put(outbox, Envelope(event=event, data=payload).model_dump())

    def _put(self, outbox: asyncio.Queue, message: Any):
        loop = self._loop
        if loop is None or _running_loop() is loop:
            outbox.put_nowait(message)
        else:
            loop.call_soon_threadsafe(outbox.put_nowait, message)

    async def pump(self, connection_id: str, websocket: WebSocket, outbox: Optional[asyncio.Queue] = None):
        """Send queued envelopes to the socket until unregistered or the socket fails."""
        outbox = outbox if outbox is not None else self._outboxes.get(connection_id)
        if outbox is None:
            return
        while True:
            message = await outbox.get()
            if message is _STOP:
                break
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Error sending {message.get('event')} to connection {connection_id}: {e}")
                # Stop accepting messages nobody will drain
                if self._outboxes.get(connection_id) is outbox:
                    del self._outboxes[connection_id]
                    logger.debug(f"Dropped dead outbox for connection {connection_id} ({len(self._outboxes)} live)")
                break

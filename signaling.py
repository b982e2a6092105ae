import threading
from typing import Any, Dict, Optional, Protocol, Tuple
from constants import DEFAULT_DISPLAY_NAME
from events import USERS_IN_ROOM, NEW_USER_CONNECTED, USER_DISCONNECTED, SIGNAL
from registry import RoomRegistry
from schemas.signaling import Member, SignalMessage, UserDisconnected
from logging_config import get_logger

logger = get_logger(__name__)


class Emitter(Protocol):
    def emit(self, connection_id: str, event: str, payload: Any) -> None:
        """Queue an event for one connection. Must not block."""


class SignalingRouter:
    """Turns connection lifecycle and relay triggers into registry updates and outbound events.

    A single lock covers the registry and the connection -> room table, so a
    join's snapshot, insert and broadcast happen as one step with respect to
    other joins and leaves.
    """

    def __init__(self, emitter: Emitter, registry: Optional[RoomRegistry] = None,
                 default_display_name: str = DEFAULT_DISPLAY_NAME):
        self.emitter = emitter
        self.registry = registry if registry is not None else RoomRegistry()
        self.default_display_name = default_display_name
        # connection_id -> room_id, recorded at connect for use at disconnect
        self._connection_rooms: Dict[str, str] = {}
        self._lock = threading.Lock()

    def on_connect(self, connection_id: str, room_id: Optional[str], display_name: Optional[str] = None) -> bool:
        """Admit a connection to its room. Returns False when it is not admitted."""
        if not room_id:
            logger.info(f"Connection {connection_id} rejected: no room given")
            return False

        name = display_name or self.default_display_name
        member = Member(connection_id=connection_id, display_name=name)

        with self._lock:
            if connection_id in self._connection_rooms:
                logger.warning(f"Connection {connection_id} already joined room "
                               f"{self._connection_rooms[connection_id]}, ignoring connect to {room_id}")
                return False

            existing = self.registry.snapshot(room_id)
            self.emitter.emit(connection_id, USERS_IN_ROOM, [m.to_wire() for m in existing])

            self.registry.add(room_id, member)
            self._broadcast(room_id, connection_id, NEW_USER_CONNECTED, member.to_wire())

            self._connection_rooms[connection_id] = room_id

        logger.info(f"User joined: {name} {connection_id} room={room_id} ({len(existing) + 1} members)")
        return True

    def on_disconnect(self, connection_id: str):
        with self._lock:
            room_id = self._connection_rooms.pop(connection_id, None)
            if room_id is None:
                logger.debug(f"Disconnect of {connection_id}: never joined a room")
                return

            self.registry.remove(room_id, connection_id)
            payload = UserDisconnected(user_id=connection_id).model_dump(by_alias=True)
            remaining = self._broadcast(room_id, connection_id, USER_DISCONNECTED, payload)

        logger.info(f"User left: {connection_id} room={room_id} ({remaining} members remaining)")

    def on_relay(self, from_connection_id: str, to_connection_id: str, payload: Any):
        """Forward an opaque signaling payload to one connection, whatever room it is in."""
        message = SignalMessage(from_=from_connection_id, data=payload).model_dump(by_alias=True)
        self.emitter.emit(to_connection_id, SIGNAL, message)
        logger.debug(f"Relayed signal {from_connection_id} -> {to_connection_id}")

    def _broadcast(self, room_id: str, exclude_connection_id: str, event: str, payload: Any) -> int:
        # Caller holds the lock.
        sent = 0
        for member in self.registry.snapshot(room_id):
            if member.connection_id == exclude_connection_id:
                continue
            self.emitter.emit(member.connection_id, event, payload)
            sent += 1
        logger.debug(f"Broadcast {event} to {sent} members of room {room_id}")
        return sent

    def room_of(self, connection_id: str) -> Optional[str]:
        with self._lock:
            return self._connection_rooms.get(connection_id)

    def members(self, room_id: str) -> Tuple[Member, ...]:
        with self._lock:
            return self.registry.snapshot(room_id)

    def rooms(self):
        with self._lock:
            return self.registry.rooms()

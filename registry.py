from typing import Dict, FrozenSet, List, Tuple
from schemas.signaling import Member
from logging_config import get_logger

logger = get_logger(__name__)


class RoomRegistry:
    """In-memory mapping of room id to the members currently joined, in join order.

    Rooms are created on first insert and dropped as soon as their last member
    leaves, so an empty room is never stored. The registry does no locking of
    its own; callers serialize mutations.
    """

    def __init__(self):
        self._rooms: Dict[str, List[Member]] = {}

    def snapshot(self, room_id: str) -> Tuple[Member, ...]:
        """Members of a room in join order, or an empty tuple if the room does not exist."""
        return tuple(self._rooms.get(room_id, ()))

    def add(self, room_id: str, member: Member):
        members = self._rooms.get(room_id)
        if members is None:
            members = self._rooms[room_id] = []
            logger.debug(f"Created room {room_id}")
        members.append(member)
        logger.debug(f"Added {member.connection_id} to room {room_id} ({len(members)} members)")

    def remove(self, room_id: str, connection_id: str):
        members = self._rooms.get(room_id)
        if members is None:
            logger.debug(f"Remove {connection_id} from room {room_id}: room not found")
            return

        remaining = [m for m in members if m.connection_id != connection_id]
        if len(remaining) == len(members):
            logger.debug(f"Remove {connection_id} from room {room_id}: not a member")
            return

        if remaining:
            self._rooms[room_id] = remaining
            logger.debug(f"Removed {connection_id} from room {room_id} ({len(remaining)} members)")
        else:
            del self._rooms[room_id]
            logger.debug(f"Removed {connection_id} from room {room_id}, room is empty and was deleted")

    def rooms(self) -> FrozenSet[str]:
        return frozenset(self._rooms)

    def __contains__(self, room_id) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

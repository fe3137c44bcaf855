from collections import deque
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple
from constants import CHAT_HISTORY_LIMIT, DEFAULT_ROOM_CONTENT
from logging_config import get_logger

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Room:
    """A collaboration room: one shared document and one chat stream."""

    def __init__(self, room_id: str, content: str, created_at: datetime, history_limit: int = CHAT_HISTORY_LIMIT):
        self.id = room_id
        # dict keys keep insertion order and reject duplicates
        self._members: Dict[str, None] = {}
        self.content = content
        self.chat_history = deque(maxlen=history_limit)
        self.created_at = created_at

    @property
    def members(self) -> List[str]:
        return list(self._members)

    def has_member(self, connection_id: str) -> bool:
        return connection_id in self._members

    def add_member(self, connection_id: str) -> bool:
        """Returns False if the connection was already a member."""
        if connection_id in self._members:
            return False
        self._members[connection_id] = None
        return True

    def remove_member(self, connection_id: str) -> bool:
        """Returns False if the connection was not a member."""
        if connection_id not in self._members:
            return False
        del self._members[connection_id]
        return True

    def is_empty(self) -> bool:
        return not self._members

    def append_chat(self, message):
        # deque(maxlen) silently drops the oldest entry on overflow
        self.chat_history.append(message)

    def __repr__(self):
        return f"Room(id={self.id!r}, members={len(self._members)}, chat={len(self.chat_history)})"


class RoomStore:
    """In-memory room table. Owned by one service instance."""

    def __init__(
        self,
        default_content: str = DEFAULT_ROOM_CONTENT,
        history_limit: int = CHAT_HISTORY_LIMIT,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._rooms: Dict[str, Room] = {}
        self.default_content = default_content
        self.history_limit = history_limit
        self.clock = clock
        logger.info(f"Initializing RoomStore (chat history limit {history_limit})")

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def get_or_create(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id, self.default_content, self.clock(), history_limit=self.history_limit)
            self._rooms[room_id] = room
            logger.info(f"Created room {room_id!r}")
        return room

    def delete(self, room_id: str):
        if self._rooms.pop(room_id, None) is not None:
            logger.info(f"Deleted room {room_id!r}")
        else:
            logger.debug(f"Delete of unknown room {room_id!r} ignored")

    def all(self) -> List[Tuple[str, Room]]:
        # Snapshot so callers may delete while iterating
        return list(self._rooms.items())

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

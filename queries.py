from datetime import datetime
from typing import Optional
from backend import RoomStore


class QueryFacade:
    """Read-only views over the room store for the status endpoints."""

    def __init__(self, store: RoomStore, started_at: Optional[datetime] = None):
        self._store = store
        self.started_at = started_at if started_at is not None else store.clock()

    def room_info(self, room_id: str) -> Optional[dict]:
        room = self._store.get(room_id)
        if room is None:
            return None
        return {
            "room_id": room_id,
            "exists": True,
            "user_count": len(room.members),
            "created_at": room.created_at.isoformat(),
        }

    def list_rooms(self) -> list:
        return [
            {
                "room_id": room_id,
                "user_count": len(room.members),
                "created_at": room.created_at.isoformat(),
                "has_content": bool(room.content),
                "chat_message_count": len(room.chat_history),
            }
            for room_id, room in self._store.all()
        ]

    def uptime_seconds(self) -> float:
        return max((self._store.clock() - self.started_at).total_seconds(), 0.0)

    def stats(self) -> dict:
        rooms = self._store.all()
        return {
            "room_count": len(rooms),
            "user_count": sum(len(room.members) for _, room in rooms),
            "uptime_seconds": self.uptime_seconds(),
        }

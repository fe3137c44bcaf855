"""Room session state machine.

Every inbound event is applied to the room store and turned into a list of
deliveries. Nothing here touches a socket; the transport sends what it is
handed back.
"""
from typing import List
from backend import Room, RoomStore
from connections import ConnectionRegistry
from constants import EAGER_ROOM_DELETION
from schemas.events import (
    ChatAppend,
    ContentUpdate,
    Delivery,
    Disconnect,
    InboundEvent,
    Join,
    Leave,
    TypingStart,
    TypingStop,
)
from logging_config import get_logger
import event_keys

logger = get_logger(__name__)


def _others(room: Room, connection_id: str) -> List[str]:
    return [m for m in room.members if m != connection_id]


class SessionManager:
    def __init__(self, store: RoomStore, registry: ConnectionRegistry, eager_deletion: bool = EAGER_ROOM_DELETION):
        self.store = store
        self.registry = registry
        self.eager_deletion = eager_deletion
        self._handlers = {
            Join: self._on_join,
            Leave: self._on_leave,
            Disconnect: self._on_disconnect,
            ContentUpdate: self._on_content_update,
            ChatAppend: self._on_chat_append,
            TypingStart: self._on_typing_start,
            TypingStop: self._on_typing_stop,
        }

    def handle(self, event: InboundEvent) -> List[Delivery]:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")
        return handler(event)

    # Convenience wrappers

    def join(self, connection_id: str, room_id: str) -> List[Delivery]:
        return self.handle(Join(connection_id=connection_id, room_id=room_id))

    def leave(self, connection_id: str, room_id: str) -> List[Delivery]:
        return self.handle(Leave(connection_id=connection_id, room_id=room_id))

    def disconnect(self, connection_id: str) -> List[Delivery]:
        return self.handle(Disconnect(connection_id=connection_id))

    def update_content(self, connection_id: str, room_id: str, content: str) -> List[Delivery]:
        return self.handle(ContentUpdate(connection_id=connection_id, room_id=room_id, content=content))

    def append_chat(self, connection_id: str, room_id: str, message) -> List[Delivery]:
        return self.handle(ChatAppend(connection_id=connection_id, room_id=room_id, message=message))

    def typing_start(self, connection_id: str, room_id: str) -> List[Delivery]:
        return self.handle(TypingStart(connection_id=connection_id, room_id=room_id))

    def typing_stop(self, connection_id: str, room_id: str) -> List[Delivery]:
        return self.handle(TypingStop(connection_id=connection_id, room_id=room_id))

    # Transitions

    def _on_join(self, event: Join) -> List[Delivery]:
        room = self.store.get_or_create(event.room_id)
        added = room.add_member(event.connection_id)
        self.registry.add_membership(event.connection_id, room.id)
        users = room.members

        deliveries = [
            Delivery(
                recipients=[event.connection_id],
                event=event_keys.ROOM_JOINED,
                data={
                    "roomId": room.id,
                    "users": users,
                    "content": room.content,
                    "chatHistory": list(room.chat_history),
                },
            )
        ]
        if added:
            logger.info(f"User {event.connection_id} joined room {room.id!r} ({len(users)} users)")
            others = _others(room, event.connection_id)
            if others:
                deliveries.append(
                    Delivery(
                        recipients=others,
                        event=event_keys.USER_JOINED,
                        data={"socketId": event.connection_id, "users": users},
                    )
                )
        else:
            logger.debug(f"User {event.connection_id} re-joined room {room.id!r}, membership unchanged")
        return deliveries

    def _remove_member(self, connection_id: str, room_id: str) -> List[Delivery]:
        self.registry.remove_membership(connection_id, room_id)
        room = self.store.get(room_id)
        if room is None or not room.remove_member(connection_id):
            logger.debug(f"User {connection_id} was not in room {room_id!r}, nothing to leave")
            return []

        logger.info(f"User {connection_id} left room {room_id!r} ({len(room.members)} users)")
        if room.is_empty():
            if self.eager_deletion:
                self.store.delete(room_id)
            return []
        return [
            Delivery(
                recipients=room.members,
                event=event_keys.USER_LEFT,
                data={"socketId": connection_id, "users": room.members},
            )
        ]

    def _on_leave(self, event: Leave) -> List[Delivery]:
        return self._remove_member(event.connection_id, event.room_id)

    def _on_disconnect(self, event: Disconnect) -> List[Delivery]:
        deliveries = []
        room_ids = self.registry.rooms_for(event.connection_id)
        for room_id in room_ids:
            deliveries.extend(self._remove_member(event.connection_id, room_id))
        self.registry.forget(event.connection_id)
        logger.info(f"User {event.connection_id} disconnected, removed from {len(room_ids)} room(s)")
        return deliveries

    def _member_room(self, connection_id: str, room_id: str):
        room = self.store.get(room_id)
        if room is None or not room.has_member(connection_id):
            return None
        return room

    def _on_content_update(self, event: ContentUpdate) -> List[Delivery]:
        room = self._member_room(event.connection_id, event.room_id)
        if room is None:
            logger.debug(f"Ignoring note change from non-member {event.connection_id} in room {event.room_id!r}")
            return []
        # Last writer wins
        room.content = event.content
        others = _others(room, event.connection_id)
        if not others:
            return []
        return [
            Delivery(
                recipients=others,
                event=event_keys.NOTE_UPDATE,
                data={"content": event.content, "sender": event.connection_id},
            )
        ]

    def _on_chat_append(self, event: ChatAppend) -> List[Delivery]:
        room = self._member_room(event.connection_id, event.room_id)
        if room is None:
            logger.debug(f"Ignoring chat from non-member {event.connection_id} in room {event.room_id!r}")
            return []
        room.append_chat(event.message)
        return [Delivery(recipients=room.members, event=event_keys.CHAT_MESSAGE, data=event.message)]

    def _typing(self, connection_id: str, room_id: str, typing: bool) -> List[Delivery]:
        # No membership check, the indicator carries no room state
        room = self.store.get(room_id)
        if room is None:
            return []
        others = _others(room, connection_id)
        if not others:
            return []
        return [
            Delivery(
                recipients=others,
                event=event_keys.USER_TYPING,
                data={"socketId": connection_id, "typing": typing},
            )
        ]

    def _on_typing_start(self, event: TypingStart) -> List[Delivery]:
        return self._typing(event.connection_id, event.room_id, True)

    def _on_typing_stop(self, event: TypingStop) -> List[Delivery]:
        return self._typing(event.connection_id, event.room_id, False)

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Union
import event_keys


# Wire payloads (client -> broker)

class NoteChangePayload(BaseModel):
    room_id: str = Field(alias="roomId")
    content: str

class ChatMessagePayload(BaseModel):
    room_id: str = Field(alias="roomId")
    message: Any = None

class TypingPayload(BaseModel):
    room_id: str = Field(alias="roomId")


# Inbound events, one type per transition

class Join(BaseModel):
    model_config = ConfigDict(frozen=True)
    connection_id: str
    room_id: str

class Leave(BaseModel):
    model_config = ConfigDict(frozen=True)
    connection_id: str
    room_id: str

class Disconnect(BaseModel):
    model_config = ConfigDict(frozen=True)
    connection_id: str

class ContentUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)
    connection_id: str
    room_id: str
    content: str

class ChatAppend(BaseModel):
    model_config = ConfigDict(frozen=True)
    connection_id: str
    room_id: str
    message: Any = None

class TypingStart(BaseModel):
    model_config = ConfigDict(frozen=True)
    connection_id: str
    room_id: str

class TypingStop(BaseModel):
    model_config = ConfigDict(frozen=True)
    connection_id: str
    room_id: str


InboundEvent = Union[Join, Leave, Disconnect, ContentUpdate, ChatAppend, TypingStart, TypingStop]


class Delivery(BaseModel):
    """One outbound event and the connections it goes to."""
    recipients: List[str]
    event: str
    data: Any = None

    def envelope(self) -> dict:
        return {event_keys.ENVELOPE_EVENT: self.event, event_keys.ENVELOPE_DATA: self.data}


def _room_id_from(data: Any) -> str:
    if not isinstance(data, str):
        raise ValueError(f"room id must be a string, got {type(data).__name__}")
    return data


def event_from_frame(connection_id: str, frame: Any) -> InboundEvent:
    """Build an inbound event from a decoded client frame.

    Raises ValueError (pydantic's ValidationError included) for frames that
    are not a known event with a well-formed payload.
    """
    if not isinstance(frame, dict):
        raise ValueError("frame must be a JSON object")
    name = frame.get(event_keys.ENVELOPE_EVENT)
    data = frame.get(event_keys.ENVELOPE_DATA)

    if name == event_keys.JOIN_ROOM:
        return Join(connection_id=connection_id, room_id=_room_id_from(data))
    if name == event_keys.LEAVE_ROOM:
        return Leave(connection_id=connection_id, room_id=_room_id_from(data))
    if name == event_keys.NOTE_CHANGE:
        payload = NoteChangePayload.model_validate(data)
        return ContentUpdate(connection_id=connection_id, room_id=payload.room_id, content=payload.content)
    if name == event_keys.CHAT_MESSAGE:
        payload = ChatMessagePayload.model_validate(data)
        return ChatAppend(connection_id=connection_id, room_id=payload.room_id, message=payload.message)
    if name == event_keys.TYPING_START:
        return TypingStart(connection_id=connection_id, room_id=TypingPayload.model_validate(data).room_id)
    if name == event_keys.TYPING_STOP:
        return TypingStop(connection_id=connection_id, room_id=TypingPayload.model_validate(data).room_id)
    raise ValueError(f"unknown event {name!r}")

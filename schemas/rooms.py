from pydantic import BaseModel
from typing import List


class RoomStatusResponse(BaseModel):
    room_id: str
    exists: bool
    user_count: int
    created_at: str

class RoomSummary(BaseModel):
    room_id: str
    user_count: int
    created_at: str
    has_content: bool
    chat_message_count: int

class RoomListResponse(BaseModel):
    room_count: int
    rooms: List[RoomSummary]

class HealthResponse(BaseModel):
    status: str
    uptime_seconds: float
    room_count: int
    user_count: int

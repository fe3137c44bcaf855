from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from schemas.rooms import HealthResponse, RoomListResponse, RoomStatusResponse, RoomSummary
from queries import QueryFacade
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])
status_router = APIRouter(tags=["status"])


def get_queries(request: Request) -> QueryFacade:
    return request.app.state.queries


@status_router.get("/", response_class=PlainTextResponse)
async def root():
    return "Collaborative Note Sharing Backend is running."


@status_router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    stats = get_queries(request).stats()
    return HealthResponse(
        status="ok",
        uptime_seconds=stats["uptime_seconds"],
        room_count=stats["room_count"],
        user_count=stats["user_count"],
    )


@rooms_router.get("", response_model=RoomListResponse)
async def list_rooms(request: Request):
    """
    List every live room.

    Each entry has the member count, creation time, whether the room has
    document content, and how many chat messages it holds.
    """
    rooms = [RoomSummary(**room) for room in get_queries(request).list_rooms()]
    logger.debug(f"Room listing requested: {len(rooms)} rooms")
    return RoomListResponse(room_count=len(rooms), rooms=rooms)


@rooms_router.get("/{room_id}", response_model=RoomStatusResponse)
async def get_room_status(room_id: str, request: Request):
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"Room status request for {room_id} from {client_host}")

    info = get_queries(request).room_info(room_id)
    if not info:
        logger.info(f"Room status: room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")
    return RoomStatusResponse(**info)

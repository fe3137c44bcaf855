from contextlib import asynccontextmanager
from fastapi import FastAPI, WebSocket
from fastapi.websockets import WebSocketState
from fastapi.middleware.cors import CORSMiddleware
from routers.rooms import rooms_router, status_router
from backend import RoomStore
from connections import ConnectionRegistry
from janitor import Janitor
from queries import QueryFacade
from session import SessionManager
from schemas.events import event_from_frame
from constants import (
    CORS_ORIGINS,
    EAGER_ROOM_DELETION,
    JANITOR_INTERVAL_SECONDS,
    LOG_FILE,
    LOG_LEVEL,
    ROOM_RETENTION_SECONDS,
)
from logging_config import get_logger, setup_logging
from typing import Optional
import event_keys
import uuid
import json

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(
    store: Optional[RoomStore] = None,
    eager_deletion: bool = EAGER_ROOM_DELETION,
    retention_seconds: int = ROOM_RETENTION_SECONDS,
    janitor_interval_seconds: float = JANITOR_INTERVAL_SECONDS,
) -> FastAPI:
    store = store if store is not None else RoomStore()
    registry = ConnectionRegistry()
    sessions = SessionManager(store, registry, eager_deletion=eager_deletion)
    janitor = Janitor(store, retention_seconds=retention_seconds, interval_seconds=janitor_interval_seconds)
    queries = QueryFacade(store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # One reclamation path only: eager deletion on leave, or the janitor
        if not eager_deletion:
            janitor.start()
        logger.info(f"Broker started (eager room deletion: {eager_deletion})")
        try:
            yield
        finally:
            await janitor.stop()
            logger.info("Broker stopped")

    app = FastAPI(title="Collaborative Notes Broker", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(status_router)
    app.include_router(rooms_router)

    app.state.store = store
    app.state.registry = registry
    app.state.sessions = sessions
    app.state.janitor = janitor
    app.state.queries = queries

    def dispatch(deliveries) -> int:
        queued = 0
        for delivery in deliveries:
            queued += registry.deliver(delivery.recipients, delivery.envelope())
        return queued

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """One client connection. Frames are {"event": name, "data": payload} JSON objects."""
        await websocket.accept()
        connection_id = str(uuid.uuid4())
        registry.register(connection_id, websocket)
        logger.info(f"A user connected: {connection_id}")

        registry.deliver([connection_id], {
            event_keys.ENVELOPE_EVENT: event_keys.CONNECTED,
            event_keys.ENVELOPE_DATA: {"socketId": connection_id},
        })

        message_count = 0
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    logger.info(f"WebSocket disconnected normally for connection {connection_id}")
                    break
                message_count += 1

                data = message.get("text")
                if data is None:
                    logger.warning(f"Dropping non-text frame #{message_count} from connection {connection_id}")
                    continue

                try:
                    event = event_from_frame(connection_id, json.loads(data))
                except ValueError as e:
                    # Malformed frames are dropped, the connection stays open
                    logger.warning(f"Dropping frame #{message_count} from connection {connection_id}: {e}")
                    continue

                logger.debug(f"Received {type(event).__name__} #{message_count} from connection {connection_id}")
                queued = dispatch(sessions.handle(event))
                logger.debug(f"Queued {queued} outbound message(s) for {type(event).__name__} from {connection_id}")
        except Exception as e:
            logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
        finally:
            dispatch(sessions.disconnect(connection_id))
            await registry.unregister(connection_id)
            logger.info(f"User disconnected: {connection_id}")
            try:
                if websocket.client_state != WebSocketState.DISCONNECTED:
                    await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")

    logger.info("FastAPI application initialized")
    return app


app = create_app()

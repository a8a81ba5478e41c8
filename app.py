from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from routers.rooms import rooms_router
from directory import UserDirectory
from hub import ConnectionHub
from messages import MessageFactory
from protocol import ProtocolHandler
from constants import CORS_ORIGINS, LOG_FILE, LOG_LEVEL, STATIC_DIR
from typing import Callable, Optional
import uuid
import asyncio
import os
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(
    directory: Optional[UserDirectory] = None,
    is_profane: Optional[Callable[[str], bool]] = None,
    message_factory: Optional[MessageFactory] = None,
    static_dir: Optional[str] = STATIC_DIR,
) -> FastAPI:
    app = FastAPI()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Single owner of all presence state for this process
    app.state.directory = directory if directory is not None else UserDirectory()
    app.state.hub = ConnectionHub(app.state.directory)
    app.state.message_factory = message_factory if message_factory is not None else MessageFactory()
    app.state.is_profane = is_profane

    app.include_router(rooms_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "connections": len(app.state.hub)}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Chat connection: JSON frames in, JSON frames out.

        Inbound frames look like {"event": "join", "data": {...}, "ack": 1}.
        Outbound frames are {"event": ..., "data": ...} or ack replies.
        """
        hub: ConnectionHub = app.state.hub
        await websocket.accept()
        connection_id = str(uuid.uuid4())
        logger.info(f"WebSocket connection accepted: {connection_id}")

        hub.register(connection_id)
        writer = asyncio.create_task(hub.pump(connection_id, websocket))
        handler = ProtocolHandler(
            connection_id,
            app.state.directory,
            hub,
            message_factory=app.state.message_factory,
            is_profane=app.state.is_profane,
        )

        try:
            while True:
                data = await websocket.receive_text()
                handler.dispatch(data)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected normally for connection {connection_id}")
        except Exception as e:
            logger.error(f"Error receiving from connection {connection_id}: {e}", exc_info=True)
        finally:
            handler.disconnect()
            writer.cancel()
            await asyncio.gather(writer, return_exceptions=True)
            hub.unregister(connection_id)
            logger.debug(f"Cleaned up connection {connection_id} (live connections: {len(hub)})")
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")

    if static_dir and os.path.isdir(static_dir):
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info(f"Serving static files from {static_dir}")

    logger.info("FastAPI application initialized")
    return app


app = create_app()

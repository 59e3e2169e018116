"""chatlateral relay FastAPI application.

Every ``text_message`` frame received on ``/ws`` is broadcast verbatim to all
connected clients, including the sender. ``image_message`` frames are relayed
the same way unless ``RELAY_IMAGES`` is off. Nothing is stored.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import APIRouter, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatlateral import __version__
from chatlateral.config.settings import Settings, settings as default_settings
from chatlateral.protocol import FrameError, RelayEvent, decode_frame
from chatlateral.relay.manager import ConnectionManager

logger = logging.getLogger("chatlateral.relay")

router = APIRouter()


@router.get("/api/health", tags=["health"])
async def health_check(request: Request) -> dict:
    manager: ConnectionManager = request.app.state.manager
    return {
        "status": "ok",
        "version": __version__,
        "connections": manager.get_connection_count(),
    }


@router.websocket("/ws")
async def relay_endpoint(websocket: WebSocket) -> None:
    manager: ConnectionManager = websocket.app.state.manager
    config: Settings = websocket.app.state.settings

    await manager.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            raw = message.get("text")
            if raw is None:
                logger.warning("Dropping binary frame")
                continue

            if len(raw.encode("utf-8")) > config.MAX_FRAME_BYTES:
                logger.warning("Dropping frame over %d bytes", config.MAX_FRAME_BYTES)
                continue

            try:
                event, _ = decode_frame(raw)
            except FrameError as exc:
                logger.warning("Dropping malformed frame: %s", exc)
                continue

            if event is RelayEvent.IMAGE_MESSAGE and not config.RELAY_IMAGES:
                logger.debug("Image relaying disabled, dropping frame")
                continue

            await manager.broadcast(raw)

    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket)


def create_app(config: Settings | None = None) -> FastAPI:
    """Build the relay application.

    Args:
        config: Settings to use. Defaults to the environment-loaded settings.
    """
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Relay listening (images relayed: %s)", config.RELAY_IMAGES)
        yield
        logger.info(
            "Relay shutting down with %d open connections",
            app.state.manager.get_connection_count(),
        )

    app = FastAPI(
        title="chatlateral relay",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.manager = ConnectionManager()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    # --- Exception handlers ---

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    return app


app = create_app()

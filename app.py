from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from routers.health import health_router
from connections import ConnectionManager
from signaling import SignalingRouter
from schemas.signaling import ConnectedMessage, Envelope, ErrorResponse, SignalRequest
from events import CONNECTED, INBOUND_SIGNAL, CLOSE_POLICY_VIOLATION
from constants import CORS_ORIGINS, LOG_LEVEL, LOG_FILE
from logging_config import get_logger, setup_logging
from typing import Optional
import asyncio
import json
import uuid

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def handle_client_frame(router: SignalingRouter, connection_id: str, data: str):
    """Parse one inbound frame and dispatch it. Bad frames are logged and dropped."""
    try:
        envelope = Envelope.model_validate(json.loads(data))
    except json.JSONDecodeError as e:
        logger.warning(f"Ignoring non-JSON frame from connection {connection_id}: {e}")
        return
    except ValidationError as e:
        logger.warning(f"Ignoring malformed frame from connection {connection_id}: {e.errors()}")
        return

    if envelope.event != INBOUND_SIGNAL:
        logger.warning(f"Ignoring unknown event '{envelope.event}' from connection {connection_id}")
        return

    try:
        request = SignalRequest.model_validate(envelope.data)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid signal from connection {connection_id}: {e.errors()}")
        return

    router.on_relay(connection_id, request.to, request.data)


def create_app() -> FastAPI:
    """Build an application with its own connection manager and signaling router."""
    app = FastAPI(title="PeerSignal")

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)

    manager = ConnectionManager()
    router = SignalingRouter(manager)
    app.state.connections = manager
    app.state.signaling = router

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content=ErrorResponse(detail="Not Found").model_dump())
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail},
                            headers=getattr(exc, "headers", None))

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket, room: Optional[str] = None, name: Optional[str] = None):
        """Signaling WebSocket.

        Query parameters:
        - room: Room to join (required)
        - name: Optional display name
        """
        logger.info(f"WebSocket connection attempt for room: {room}, name: {name}")

        if not room:
            logger.info("WebSocket connection rejected: no room given")
            await websocket.close(code=CLOSE_POLICY_VIOLATION, reason="Room is required")
            return

        await websocket.accept()
        connection_id = uuid.uuid4().hex
        outbox = manager.register(connection_id)
        pump_task = asyncio.create_task(manager.pump(connection_id, websocket, outbox))
        manager.emit(connection_id, CONNECTED, ConnectedMessage(id=connection_id).model_dump())

        try:
            router.on_connect(connection_id, room, name)

            while True:
                try:
                    data = await websocket.receive_text()
                except WebSocketDisconnect:
                    logger.info(f"WebSocket disconnected normally for connection {connection_id} in room {room}")
                    break
                except Exception as e:
                    logger.error(f"Error receiving message from connection {connection_id} in room {room}: {e}",
                                 exc_info=True)
                    break

                handle_client_frame(router, connection_id, data)
        except Exception as e:
            logger.error(f"WebSocket error for connection {connection_id} in room {room}: {e}", exc_info=True)
        finally:
            router.on_disconnect(connection_id)
            manager.unregister(connection_id)
            try:
                await asyncio.wait_for(pump_task, timeout=1.0)
            except asyncio.TimeoutError:
                logger.debug(f"Outbox for connection {connection_id} did not drain, cancelled")

            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")

    logger.info("FastAPI application initialized")
    return app


app = create_app()

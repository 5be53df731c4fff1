"""
FastAPI WebSocket Chat Broker
Single chat room with usernames, private messages, typing indicators and reactions
"""

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pathlib import Path
import asyncio
import time
from typing import Optional
import uvicorn

from chat_broker import (
    SessionManager,
    WebSocketTransport,
    parse_frame,
    get_logger,
    log_websocket_event,
    log_system_event,
    HOST,
    PORT,
    LOG_LEVEL,
    TYPING_STOP_DELAY_SECONDS,
    WELCOME_DELAY_SECONDS,
    WS_PING_INTERVAL,
    WS_PING_TIMEOUT
)

logger = get_logger()

PUBLIC_DIR = Path(__file__).resolve().parent / "public"

def handle_loop_exception(loop: asyncio.AbstractEventLoop, context: dict):
    """Log faults that escaped every handler instead of letting them pass silently"""
    exc = context.get("exception")
    message = context.get("message", "unhandled error")
    if exc is not None:
        logger.error(f"Uncaught exception: {message}: {exc!r}")
    else:
        logger.error(f"Unhandled asyncio error: {message}")
    log_system_event("uncaught_exception", f"{message} | {exc!r}", level="error")

def create_app(welcome_delay: float = WELCOME_DELAY_SECONDS,
               typing_delay: float = TYPING_STOP_DELAY_SECONDS,
               public_dir: Optional[Path] = None) -> FastAPI:
    """
    Build the chat application with its own server context

    Args:
        welcome_delay: Seconds before the welcome message reaches a newly named user
        typing_delay: Seconds of silence before "stop typing" is sent
        public_dir: Directory holding index.html and static assets

    Returns:
        Configured FastAPI application
    """
    public_dir = public_dir or PUBLIC_DIR
    transport = WebSocketTransport()
    sessions = SessionManager(transport, welcome_delay=welcome_delay, typing_delay=typing_delay)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan management"""
        logger.info("Chat broker starting up...")

        loop = asyncio.get_running_loop()
        previous_handler = loop.get_exception_handler()
        loop.set_exception_handler(handle_loop_exception)

        yield

        await sessions.shutdown()
        loop.set_exception_handler(previous_handler)
        logger.info("Chat broker shutting down...")

    app = FastAPI(
        title="WebSocket Chat Broker",
        description="Real-time chat room with private messages, typing indicators and reactions",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.transport = transport
    app.state.sessions = sessions

    app.mount("/static", StaticFiles(directory=str(public_dir)), name="static")

    @app.get("/")
    async def root():
        """Serve the chat page"""
        try:
            return HTMLResponse(content=(public_dir / "index.html").read_text(encoding="utf-8"))
        except FileNotFoundError:
            return HTMLResponse(content="<h1>Chat interface not found</h1>", status_code=404)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        try:
            session_stats = await sessions.get_session_stats()

            return {
                "status": "healthy",
                "timestamp": time.time(),
                "connections": len(transport),
                "sessions": session_stats
            }
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            raise HTTPException(status_code=503, detail="Service unavailable")

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Chat WebSocket endpoint: one session per connection"""
        await websocket.accept()

        client_ip = websocket.client.host if websocket.client else "unknown"
        connection_id = transport.attach(websocket, client_ip)
        log_websocket_event("connection_accepted", connection_id, f"client_ip={client_ip}")

        try:
            await sessions.connect(connection_id)

            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))

                raw = message.get("text")
                if raw is None:
                    log_websocket_event("frame_rejected", connection_id, "binary frame")
                    logger.warning(f"Ignoring binary frame from {connection_id}")
                    continue

                try:
                    is_valid, error_msg, event = parse_frame(raw)
                    if not is_valid:
                        log_websocket_event("frame_rejected", connection_id, error_msg)
                        logger.warning(f"Ignoring frame from {connection_id}: {error_msg}")
                        continue

                    log_websocket_event("frame_received", connection_id, f"event={event.event}")
                    await sessions.handle_event(connection_id, event)

                except Exception as e:
                    logger.error(f"Frame handling error for {connection_id}: {e}")
                    log_system_event("frame_error", f"conn={connection_id} | error={e}", level="error")
                    # Continue processing other frames
                    continue

        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected: {connection_id}")

        except Exception as e:
            logger.error(f"WebSocket error on {connection_id}: {e}")
            log_system_event("websocket_error", f"conn={connection_id} | ip={client_ip} | error={e}", level="error")

        finally:
            transport.detach(connection_id)
            try:
                await sessions.disconnect(connection_id)
            except Exception as e:
                logger.error(f"Cleanup failed for {connection_id}: {e}")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Log unexpected HTTP-side faults and keep serving"""
        logger.error(f"Unhandled exception: {exc}")
        log_system_event("unhandled_exception", f"path={request.url} | error={exc}", level="error")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    return app

app = create_app()

if __name__ == "__main__":
    logger.info("Starting WebSocket Chat Broker...")

    uvicorn.run(
        "main:app",
        host=HOST,
        port=PORT,
        reload=False,
        log_level=LOG_LEVEL.lower(),
        access_log=True,
        ws_ping_interval=WS_PING_INTERVAL,
        ws_ping_timeout=WS_PING_TIMEOUT,
    )

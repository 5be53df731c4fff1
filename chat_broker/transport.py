"""
WebSocket transport: owns the live connections and writes frames to them
"""

import uuid
from typing import Any, Dict, List, Optional
from .models import OutboundEvent
from .logger import get_logger, log_connection_event, log_websocket_event

logger = get_logger()

class WebSocketTransport:
    """Live WebSocket connections keyed by connection identifier"""

    def __init__(self):
        # connection_id -> WebSocket
        self._sockets: Dict[str, Any] = {}

    def attach(self, websocket: Any, ip_address: str = "unknown") -> str:
        """
        Track an accepted WebSocket and assign it a connection identifier

        Args:
            websocket: Accepted WebSocket connection object
            ip_address: Client IP address

        Returns:
            New connection identifier
        """
        connection_id = uuid.uuid4().hex
        self._sockets[connection_id] = websocket
        log_connection_event(connection_id, "connect", ip_address=ip_address)
        return connection_id

    def detach(self, connection_id: str) -> bool:
        """Stop tracking a connection; True if it was live"""
        websocket = self._sockets.pop(connection_id, None)
        if websocket is None:
            return False

        log_connection_event(connection_id, "disconnect")
        return True

    def connection_ids(self) -> List[str]:
        """Snapshot of the live connection identifiers"""
        return list(self._sockets)

    def __len__(self) -> int:
        return len(self._sockets)

    async def send(self, connection_id: str, event: OutboundEvent) -> bool:
        """
        Write one frame to one connection

        Args:
            connection_id: Recipient connection identifier
            event: Frame to send

        Returns:
            True if the frame was written, False if the connection is gone or the write failed
        """
        websocket: Optional[Any] = self._sockets.get(connection_id)
        if websocket is None:
            log_websocket_event("send_skipped", connection_id, f"event={event.event} (not live)")
            return False

        try:
            await websocket.send_text(event.to_json())
            return True

        except Exception as e:
            # Recipient went away mid fan-out; the receive loop will clean it up
            logger.error(f"Failed to send {event.event} to {connection_id}: {e}")
            return False

"""
Event routing: turns a delivery intent into a recipient set
"""

from typing import Any, Iterable, List, Optional, Protocol
from .constants import EVENT_SYSTEM_MESSAGE, ERROR_MESSAGES
from .models import OutboundEvent
from .logger import get_logger, log_message_event

logger = get_logger()

class Transport(Protocol):
    """What the router needs from the transport layer"""

    def connection_ids(self) -> List[str]: ...

    async def send(self, connection_id: str, event: OutboundEvent) -> bool: ...

class EventRouter:
    """Fire-and-forget fan-out of outbound events"""

    def __init__(self, transport: Transport):
        self._transport = transport

    async def broadcast_all(self, sender_id: str, event: str, data: Any = None) -> int:
        """
        Deliver to every live connection, sender included

        Args:
            sender_id: Originating connection (for logging only)
            event: Outbound event name
            data: Event payload

        Returns:
            Number of successful deliveries
        """
        recipients = self._transport.connection_ids()
        delivered = await self._deliver(recipients, OutboundEvent(event, data))
        log_message_event(event, sender_id, "all", delivered)
        return delivered

    async def broadcast_others(self, sender_id: str, event: str, data: Any = None) -> int:
        """
        Deliver to every live connection except the sender

        Args:
            sender_id: Originating connection, excluded from delivery
            event: Outbound event name
            data: Event payload

        Returns:
            Number of successful deliveries
        """
        recipients = [cid for cid in self._transport.connection_ids() if cid != sender_id]
        delivered = await self._deliver(recipients, OutboundEvent(event, data))
        log_message_event(event, sender_id, "others", delivered)
        return delivered

    async def unicast_self(self, sender_id: str, event: str, data: Any = None) -> int:
        """Deliver only to the sender's own connection"""
        delivered = await self._deliver([sender_id], OutboundEvent(event, data))
        log_message_event(event, sender_id, "self", delivered)
        return delivered

    async def unicast_target(self, sender_id: str, target_id: str, target_name: Optional[str],
                             event: str, data: Any = None) -> int:
        """
        Deliver to one specific connection

        A target the registry does not know (target_name is None) is answered
        with an error system message to the sender instead.

        Args:
            sender_id: Originating connection
            target_id: Recipient connection identifier
            target_name: Registry lookup result for target_id
            event: Outbound event name
            data: Event payload

        Returns:
            Number of successful deliveries to the target
        """
        if target_name is None:
            logger.info(f"Private message from {sender_id} to unknown target {target_id}")
            await self.unicast_self(sender_id, EVENT_SYSTEM_MESSAGE, ERROR_MESSAGES["user_not_found"])
            return 0

        delivered = await self._deliver([target_id], OutboundEvent(event, data))
        log_message_event(event, sender_id, "target", delivered, f"target={target_id}")
        return delivered

    async def _deliver(self, recipients: Iterable[str], outbound: OutboundEvent) -> int:
        successful_sends = 0
        for connection_id in recipients:
            if await self._transport.send(connection_id, outbound):
                successful_sends += 1
        return successful_sends

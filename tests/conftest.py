"""Test configuration and fixtures."""
import pytest

from chat_broker import OutboundEvent, SessionManager


class RecordingTransport:
    """In-memory transport that records every frame it is asked to send."""

    def __init__(self, *connection_ids):
        self.live = list(connection_ids)
        self.sent = []

    def connection_ids(self):
        return list(self.live)

    def drop(self, connection_id):
        self.live.remove(connection_id)

    async def send(self, connection_id, event: OutboundEvent) -> bool:
        if connection_id not in self.live:
            return False
        self.sent.append((connection_id, event.event, event.data))
        return True

    def received(self, connection_id, event=None):
        """Payloads delivered to one connection, optionally filtered by event name."""
        return [data for cid, name, data in self.sent
                if cid == connection_id and (event is None or name == event)]

    def deliveries(self, event):
        """(connection_id, data) pairs for one event name."""
        return [(cid, data) for cid, name, data in self.sent if name == event]


@pytest.fixture
def transport():
    return RecordingTransport("a", "b", "c")


@pytest.fixture
def sessions(transport):
    """Session manager with short delays so timing tests stay fast."""
    return SessionManager(transport, welcome_delay=0.05, typing_delay=0.2)

"""
Data models for the realtime chat broker
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

class SessionState(str, Enum):
    """Lifecycle of a single connection"""
    CONNECTED = "connected"
    IDENTIFIED = "identified"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"

@dataclass
class User:
    """A connection that has identified itself with a display name"""
    connection_id: str
    display_name: str
    identified_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def rename(self, display_name: str):
        self.display_name = display_name
        self.identified_at = datetime.now(timezone.utc)

@dataclass
class ChatMessage:
    """Transient chat payload, built per event and never stored"""
    user: str
    msg: str
    private: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        data = {"user": self.user, "msg": self.msg}
        if self.private:
            data["private"] = True
        return data

@dataclass
class OutboundEvent:
    """A single frame sent to a client"""
    event: str
    data: Any = None

    def to_dict(self) -> Dict[str, Any]:
        frame = {"event": self.event}
        if self.data is not None:
            frame["data"] = self.data
        return frame

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

@dataclass
class InboundEvent:
    """A parsed frame received from a client"""
    event: str
    data: Optional[Any] = None

"""
Input validation for the realtime chat broker
"""

import json
from typing import Any, Optional, Tuple
from .constants import (
    GUEST_NAME,
    INBOUND_EVENTS,
    MAX_FRAME_SIZE_BYTES,
    ERROR_MESSAGES
)
from .models import InboundEvent

def normalize_display_name(raw_name: Any) -> str:
    """
    Trim a requested display name, falling back to the guest name

    Args:
        raw_name: Name as received from the client (may be absent or not a string)

    Returns:
        Display name to store
    """
    if not isinstance(raw_name, str):
        return GUEST_NAME

    name = raw_name.strip()
    return name or GUEST_NAME

def is_valid_chat_text(msg: Any) -> bool:
    """
    Check that a chat message carries non-blank text

    Args:
        msg: Message payload from the client

    Returns:
        True if the message should be broadcast
    """
    return isinstance(msg, str) and bool(msg.strip())

def parse_private_message(payload: Any) -> Tuple[bool, str, Any]:
    """
    Extract the target and text of a private message

    Args:
        payload: Private message payload, expected {"to": ..., "msg": ...}

    Returns:
        Tuple of (is_valid, target_connection_id, msg)
    """
    if not isinstance(payload, dict):
        return False, "", None

    target = payload.get("to")
    if target is None:
        target = ""

    return True, str(target), payload.get("msg")

def parse_frame(raw: str) -> Tuple[bool, str, Optional[InboundEvent]]:
    """
    Decode a text frame into an inbound event

    Args:
        raw: Raw text received from the WebSocket

    Returns:
        Tuple of (is_valid, error_message, event)
    """
    if len(raw.encode("utf-8")) > MAX_FRAME_SIZE_BYTES:
        return False, ERROR_MESSAGES["frame_too_large"], None

    try:
        payload = json.loads(raw)
    except (ValueError, RecursionError):
        return False, ERROR_MESSAGES["invalid_json"], None

    if not isinstance(payload, dict) or not isinstance(payload.get("event"), str):
        return False, ERROR_MESSAGES["invalid_frame"], None

    event = payload["event"]
    if event not in INBOUND_EVENTS:
        return False, f"{ERROR_MESSAGES['unknown_event']}: {event}", None

    return True, "", InboundEvent(event=event, data=payload.get("data"))

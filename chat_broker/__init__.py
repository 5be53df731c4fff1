"""
Realtime Chat Broker
Connection registry, typing timers, event routing and session lifecycle
"""

from .models import User, ChatMessage, OutboundEvent, InboundEvent, SessionState
from .validators import normalize_display_name, is_valid_chat_text, parse_private_message, parse_frame
from .registry import ConnectionRegistry
from .timers import TimerManager
from .router import EventRouter
from .transport import WebSocketTransport
from .session import SessionManager, fetch_welcome_message
from .constants import *
from .logger import (
    get_logger,
    log_connection_event,
    log_session_event,
    log_message_event,
    log_websocket_event,
    log_system_event
)

__all__ = [
    'User',
    'ChatMessage',
    'OutboundEvent',
    'InboundEvent',
    'SessionState',
    'normalize_display_name',
    'is_valid_chat_text',
    'parse_private_message',
    'parse_frame',
    'ConnectionRegistry',
    'TimerManager',
    'EventRouter',
    'WebSocketTransport',
    'SessionManager',
    'fetch_welcome_message',
    'get_logger',
    'log_connection_event',
    'log_session_event',
    'log_message_event',
    'log_websocket_event',
    'log_system_event'
]

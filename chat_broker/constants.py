"""
Constants for the realtime chat broker
"""

# Server settings
HOST = "0.0.0.0"
PORT = 3002

# Session timing
WELCOME_DELAY_SECONDS = 1.5
TYPING_STOP_DELAY_SECONDS = 2.0
WELCOME_MESSAGE = "Welcome to the Simple WebSocket Chat!"

# Display name fallbacks
GUEST_NAME = "Guest"
ANONYMOUS_NAME = "Anonymous"

# Inbound events
EVENT_SET_USERNAME = "set username"
EVENT_TYPING = "typing"
EVENT_CHAT_MESSAGE = "chat message"
EVENT_PRIVATE_MESSAGE = "private message"
EVENT_REACTION = "reaction"

# Outbound events
EVENT_CONNECTED = "connected"
EVENT_SYSTEM_MESSAGE = "system message"
EVENT_STOP_TYPING = "stop typing"

INBOUND_EVENTS = frozenset({
    EVENT_SET_USERNAME,
    EVENT_TYPING,
    EVENT_CHAT_MESSAGE,
    EVENT_PRIVATE_MESSAGE,
    EVENT_REACTION,
})

# System message templates
JOIN_TEMPLATE = "{name} has joined the chat!"
LEAVE_TEMPLATE = "{name} has left the chat."

# WebSocket settings
MAX_FRAME_SIZE_BYTES = 65536
WS_PING_INTERVAL = 20
WS_PING_TIMEOUT = 10

# Logging levels
LOG_LEVEL = "INFO"

# Error messages
ERROR_MESSAGES = {
    "user_not_found": "⚠️ User not found.",
    "invalid_json": "Invalid JSON format",
    "invalid_frame": "Frame must be an object with an event name",
    "unknown_event": "Unknown event",
    "frame_too_large": "Frame exceeds maximum size",
}

"""
Logging configuration for the realtime chat broker
"""

import logging
import sys
from typing import Optional
from .constants import LOG_LEVEL

class SingleLineFormatter(logging.Formatter):
    """Formatter that keeps every record on one line"""

    def format(self, record):
        message = super().format(record)
        # Display names and chat text are user supplied; stop them forging log lines
        if record.exc_info or record.stack_info:
            return message
        return message.replace('\r', '\\r').replace('\n', '\\n')

def get_logger(name: str = "chat_broker") -> logging.Logger:
    """
    Get the broker logger with proper formatting

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)

        formatter = SingleLineFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)

        logger.addHandler(handler)
        logger.setLevel(LOG_LEVEL)

        # Prevent propagation to root logger
        logger.propagate = False

    return logger

def log_connection_event(connection_id: str, action: str, username: Optional[str] = None, ip_address: str = "unknown"):
    """
    Log connection-related events for monitoring

    Args:
        connection_id: Connection identifier
        action: Action (connect/disconnect/error)
        username: Display name, if the connection identified itself
        ip_address: Client IP address
    """
    logger = get_logger()
    log_message = f"CONNECTION_EVENT: {action} | conn={connection_id} | user={username or '-'} | ip={ip_address}"
    logger.info(log_message)

def log_session_event(connection_id: str, transition: str, details: str = ""):
    """
    Log session state transitions

    Args:
        connection_id: Connection identifier
        transition: Transition name (e.g. connected->identified)
        details: Additional details
    """
    logger = get_logger()
    log_message = f"SESSION_EVENT: {transition} | conn={connection_id} | {details}"
    logger.info(log_message)

def log_message_event(event: str, connection_id: str, scope: str, recipients: int, details: str = ""):
    """
    Log outbound fan-out of a message

    Args:
        event: Event name sent
        connection_id: Originating connection
        scope: Recipient policy (all/others/self/target)
        recipients: Number of successful deliveries
        details: Additional details
    """
    logger = get_logger()
    log_message = f"MESSAGE_EVENT: {event} | conn={connection_id} | scope={scope} | recipients={recipients} | {details}"
    logger.debug(log_message)

def log_websocket_event(event_type: str, connection_id: str, details: str = ""):
    """
    Log WebSocket protocol events

    Args:
        event_type: Type of WebSocket event
        connection_id: Connection identifier
        details: Additional details
    """
    logger = get_logger()
    log_message = f"WEBSOCKET_EVENT: {event_type} | conn={connection_id} | {details}"
    logger.debug(log_message)

def log_system_event(event_type: str, details: str, level: str = "info"):
    """
    Log system-level events

    Args:
        event_type: Type of system event
        details: Event details
        level: Log level (info/warning/error)
    """
    logger = get_logger()
    log_message = f"SYSTEM_EVENT: {event_type} | {details}"

    if level == "warning":
        logger.warning(log_message)
    elif level == "error":
        logger.error(log_message)
    else:
        logger.info(log_message)

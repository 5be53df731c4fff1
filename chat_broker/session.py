"""
Session lifecycle: connect, identify, steady-state event handling, disconnect
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Set
from .constants import (
    ANONYMOUS_NAME,
    EVENT_CHAT_MESSAGE,
    EVENT_CONNECTED,
    EVENT_PRIVATE_MESSAGE,
    EVENT_REACTION,
    EVENT_SET_USERNAME,
    EVENT_STOP_TYPING,
    EVENT_SYSTEM_MESSAGE,
    EVENT_TYPING,
    GUEST_NAME,
    JOIN_TEMPLATE,
    LEAVE_TEMPLATE,
    TYPING_STOP_DELAY_SECONDS,
    WELCOME_DELAY_SECONDS,
    WELCOME_MESSAGE
)
from .models import ChatMessage, InboundEvent, SessionState
from .registry import ConnectionRegistry
from .router import EventRouter, Transport
from .timers import TimerManager
from .validators import is_valid_chat_text, parse_private_message
from .logger import get_logger, log_session_event, log_system_event

logger = get_logger()

WelcomeFetcher = Callable[[], Awaitable[str]]

async def fetch_welcome_message(delay: float = WELCOME_DELAY_SECONDS) -> str:
    """Simulated slow lookup of the welcome text"""
    await asyncio.sleep(delay)
    return WELCOME_MESSAGE

class SessionManager:
    """
    Server context shared by every connection handler

    Owns the connection registry, the typing timers and the per-connection
    session state, and routes the results of each inbound event through the
    event router.
    """

    def __init__(self, transport: Transport,
                 welcome_delay: float = WELCOME_DELAY_SECONDS,
                 typing_delay: float = TYPING_STOP_DELAY_SECONDS,
                 welcome_fetcher: Optional[WelcomeFetcher] = None):
        self.registry = ConnectionRegistry()
        self.timers = TimerManager()
        self.router = EventRouter(transport)
        self.typing_delay = typing_delay
        self._fetch_welcome = welcome_fetcher or (lambda: fetch_welcome_message(welcome_delay))
        # connection_id -> SessionState
        self._states: Dict[str, SessionState] = {}
        # connection_id -> pending welcome deliveries
        self._welcome_tasks: Dict[str, Set[asyncio.Task]] = {}
        self._handlers: Dict[str, Callable[[str, Any], Awaitable[None]]] = {
            EVENT_SET_USERNAME: self.on_set_username,
            EVENT_TYPING: self.on_typing,
            EVENT_CHAT_MESSAGE: self.on_chat_message,
            EVENT_PRIVATE_MESSAGE: self.on_private_message,
            EVENT_REACTION: self.on_reaction,
        }

    def state(self, connection_id: str) -> SessionState:
        return self._states.get(connection_id, SessionState.DISCONNECTED)

    async def connect(self, connection_id: str):
        """Start a session for a freshly attached connection and tell it its identifier"""
        self._states[connection_id] = SessionState.CONNECTED
        log_session_event(connection_id, "connected")
        await self.router.unicast_self(connection_id, EVENT_CONNECTED, {"id": connection_id})

    async def handle_event(self, connection_id: str, event: InboundEvent):
        """
        Dispatch one inbound event; never raises

        Args:
            connection_id: Originating connection
            event: Parsed inbound event
        """
        if self.state(connection_id) == SessionState.DISCONNECTED:
            logger.warning(f"Dropping {event.event} from closed connection {connection_id}")
            return

        handler = self._handlers.get(event.event)
        if handler is None:
            logger.debug(f"No handler for {event.event} from {connection_id}")
            return

        try:
            await handler(connection_id, event.data)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Handler for {event.event} failed on {connection_id}: {e}")
            log_system_event("handler_error", f"event={event.event} | conn={connection_id} | error={e}", level="error")

    async def on_set_username(self, connection_id: str, raw_name: Any):
        display_name = await self.registry.register(connection_id, raw_name)
        self._states[connection_id] = SessionState.IDENTIFIED
        log_session_event(connection_id, "identified", f"user={display_name}")

        await self.router.broadcast_others(
            connection_id, EVENT_SYSTEM_MESSAGE, JOIN_TEMPLATE.format(name=display_name)
        )
        self._schedule_welcome(connection_id)

        self._states[connection_id] = SessionState.ACTIVE

    async def on_typing(self, connection_id: str, _data: Any = None):
        async def stop_typing():
            await self.router.broadcast_others(connection_id, EVENT_STOP_TYPING)

        self.timers.arm(connection_id, self.typing_delay, stop_typing)

        display_name = await self.registry.lookup(connection_id, default=ANONYMOUS_NAME)
        await self.router.broadcast_others(connection_id, EVENT_TYPING, display_name)

    async def on_chat_message(self, connection_id: str, msg: Any):
        if not is_valid_chat_text(msg):
            logger.debug(f"Ignoring empty chat message from {connection_id}")
            return

        display_name = await self.registry.lookup(connection_id, default=GUEST_NAME)
        message = ChatMessage(user=display_name, msg=msg)
        await self.router.broadcast_all(connection_id, EVENT_CHAT_MESSAGE, message.to_dict())

    async def on_private_message(self, connection_id: str, payload: Any):
        is_valid, target_id, msg = parse_private_message(payload)
        if not is_valid:
            logger.warning(f"Malformed private message from {connection_id}")
            return

        target_name = await self.registry.lookup(target_id)
        sender_name = await self.registry.lookup(connection_id, default=GUEST_NAME)
        message = ChatMessage(user=sender_name, msg=msg, private=True)

        await self.router.unicast_target(
            connection_id, target_id, target_name, EVENT_CHAT_MESSAGE, message.to_dict()
        )

    async def on_reaction(self, connection_id: str, data: Any):
        await self.router.broadcast_all(connection_id, EVENT_REACTION, data)

    async def disconnect(self, connection_id: str):
        """
        End a session: stop its timers, forget its user and announce the departure

        Safe to call more than once for the same connection.
        """
        if self._states.pop(connection_id, None) is None:
            return

        self.timers.disarm(connection_id)
        for task in self._welcome_tasks.pop(connection_id, set()):
            task.cancel()

        display_name = await self.registry.remove(connection_id)
        log_session_event(connection_id, "disconnected", f"user={display_name or '-'}")

        if display_name:
            logger.info(f"User {display_name} disconnected")
            await self.router.broadcast_others(
                connection_id, EVENT_SYSTEM_MESSAGE, LEAVE_TEMPLATE.format(name=display_name)
            )

    async def shutdown(self):
        """Cancel every timer and pending welcome delivery"""
        cancelled = self.timers.disarm_all()
        for tasks in self._welcome_tasks.values():
            for task in tasks:
                task.cancel()
        self._welcome_tasks.clear()
        log_system_event("sessions_shutdown", f"timers_cancelled={cancelled} | sessions={len(self._states)}")

    async def get_session_stats(self) -> Dict[str, int]:
        """
        Get session statistics

        Returns:
            Dictionary with session stats
        """
        users = await self.registry.snapshot()
        return {
            "sessions": len(self._states),
            "identified": len(users),
            "display_names": len(set(users.values())),
            "typing": len(self.timers),
        }

    def _schedule_welcome(self, connection_id: str):
        task = asyncio.create_task(self._deliver_welcome(connection_id))
        tasks = self._welcome_tasks.setdefault(connection_id, set())
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    async def _deliver_welcome(self, connection_id: str):
        try:
            welcome_message = await self._fetch_welcome()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error fetching welcome message: {e}")
            return

        # The connection may have gone while we were waiting
        if not await self.registry.contains(connection_id):
            logger.debug(f"Welcome for {connection_id} dropped, connection closed")
            return

        await self.router.unicast_self(connection_id, EVENT_SYSTEM_MESSAGE, welcome_message)

"""
Connection registry: which live connections have identified, and as whom
"""

import asyncio
from typing import Dict, Optional
from .models import User
from .validators import normalize_display_name
from .logger import get_logger, log_connection_event

logger = get_logger()

class ConnectionRegistry:
    """Maps connection identifiers to display names; all mutations serialised"""

    def __init__(self):
        # connection_id -> User
        self._users: Dict[str, User] = {}
        # Single mutation lock
        self._lock = asyncio.Lock()

    async def register(self, connection_id: str, raw_name) -> str:
        """
        Register (or rename) the user behind a connection

        Args:
            connection_id: Connection identifier
            raw_name: Requested display name, possibly absent or blank

        Returns:
            The display name that was stored
        """
        display_name = normalize_display_name(raw_name)

        async with self._lock:
            user = self._users.get(connection_id)
            if user is None:
                self._users[connection_id] = User(connection_id=connection_id, display_name=display_name)
                log_connection_event(connection_id, "identify", display_name)
            else:
                previous = user.display_name
                user.rename(display_name)
                logger.info(f"Connection {connection_id} renamed: {previous} -> {display_name}")

        return display_name

    async def lookup(self, connection_id: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get the display name for a connection

        Args:
            connection_id: Connection identifier
            default: Value returned when the connection never identified itself

        Returns:
            Display name, or default if not found
        """
        async with self._lock:
            user = self._users.get(connection_id)

        if user is None:
            return default
        return user.display_name

    async def remove(self, connection_id: str) -> Optional[str]:
        """
        Forget a connection

        Args:
            connection_id: Connection identifier

        Returns:
            The display name that was removed, or None if it never identified
        """
        async with self._lock:
            user = self._users.pop(connection_id, None)

        if user is None:
            return None

        log_connection_event(connection_id, "forget", user.display_name)
        return user.display_name

    async def contains(self, connection_id: str) -> bool:
        async with self._lock:
            return connection_id in self._users

    async def snapshot(self) -> Dict[str, str]:
        """Copy of the current connection -> display name mapping"""
        async with self._lock:
            return {cid: user.display_name for cid, user in self._users.items()}

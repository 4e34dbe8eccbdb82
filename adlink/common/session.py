"""
Session context for signed-in users.

Authentication itself happens upstream: the authenticating proxy forwards
the user id in a header. ``SessionContext`` tracks which users have been
seen, and lets other components subscribe to sign-in / sign-out so they can
warm or drop per-user state. One instance is owned by the application and
closed with it.

The header value is client-controlled, so the map is bounded: sessions idle
longer than ``ttl_seconds`` are signed out, and at ``max_sessions`` the
least recently seen session is signed out to make room.
"""

from __future__ import annotations

import inspect
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from adlink.common.logger import get_logger
from adlink.common.utils import current_datetime

logger = get_logger(__name__)


class SessionEvent(str, Enum):
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


@dataclass
class AuthSession:
    """A user session as seen by this service."""

    user_id: str
    started_at: datetime = field(default_factory=current_datetime)
    user_agent: str | None = None
    last_seen: float = field(default_factory=time.monotonic, repr=False)


SessionListener = Callable[[SessionEvent, AuthSession], Awaitable[None] | None]


class SessionContext:
    """Registry of active sessions with a subscribe/unsubscribe lifecycle."""

    def __init__(self, ttl_seconds: float = 3600, max_sessions: int = 10000) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        # Least recently seen first
        self._sessions: OrderedDict[str, AuthSession] = OrderedDict()
        self._listeners: list[SessionListener] = []

    def __len__(self) -> int:
        return len(self._sessions)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get(self, user_id: str) -> AuthSession | None:
        return self._sessions.get(user_id)

    async def resolve(self, user_id: str, user_agent: str | None = None) -> AuthSession:
        """Return the session for ``user_id``, announcing it the first time."""
        await self.prune()

        session = self._sessions.get(user_id)
        if session is not None:
            session.last_seen = time.monotonic()
            self._sessions.move_to_end(user_id)
            return session

        while len(self._sessions) >= self.max_sessions:
            oldest = next(iter(self._sessions))
            logger.debug("Session evicted at capacity", user_id=oldest)
            await self.sign_out(oldest)

        session = AuthSession(user_id=user_id, user_agent=user_agent)
        self._sessions[user_id] = session
        await self._publish(SessionEvent.SIGNED_IN, session)
        return session

    async def prune(self) -> int:
        """Sign out idle sessions. Returns how many were dropped."""
        now = time.monotonic()
        expired = []
        for user_id, session in self._sessions.items():
            if now - session.last_seen <= self.ttl_seconds:
                # Ordered by last_seen, the rest are fresher
                break
            expired.append(user_id)
        for user_id in expired:
            await self.sign_out(user_id)
        return len(expired)

    async def sign_out(self, user_id: str) -> bool:
        session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        await self._publish(SessionEvent.SIGNED_OUT, session)
        return True

    async def close(self) -> None:
        """Sign everyone out and drop all listeners."""
        for user_id in list(self._sessions):
            await self.sign_out(user_id)
        self._listeners.clear()

    async def _publish(self, event: SessionEvent, session: AuthSession) -> None:
        logger.info("Session event", session_event=event.value, user_id=session.user_id)
        for listener in list(self._listeners):
            result = listener(event, session)
            if inspect.isawaitable(result):
                await result

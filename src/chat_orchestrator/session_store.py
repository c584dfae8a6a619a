"""In-memory session store: native transcripts with idle TTL and a length cap."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterator, Callable
from typing import Any

from pydantic import BaseModel, Field

from src.llm_bridge import NativeHistory, ProviderName, UnknownProviderError

from .config import MAX_HISTORY_LENGTH, SESSION_SWEEP_INTERVAL_SECONDS, SESSION_TTL_SECONDS

logger = logging.getLogger(__name__)


class Session(BaseModel):
    """One conversation. ``native_history.provider`` always equals ``provider``."""

    session_id: str
    provider: ProviderName
    native_history: NativeHistory
    created_at: float
    last_activity_at: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class SessionStore:
    """
    Sessions keyed by id, evicted after ``ttl_seconds`` without activity.

    ``get`` and ``update_history`` count as activity. Expired sessions are
    dropped lazily on access and eagerly by the sweep task that ``start``
    launches. ``clock`` returns seconds and is injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        max_history_length: int = MAX_HISTORY_LENGTH,
        sweep_interval_seconds: float = SESSION_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_history_length = max_history_length
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._sweep_task: asyncio.Task[None] | None = None

    # -- lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        if self._sweep_task is not None:
            return
        self._sweep_task = asyncio.create_task(self._sweep_forever())
        logger.info(
            "Session store started (ttl=%ss, max_history=%d, sweep every %ss)",
            self.ttl_seconds,
            self.max_history_length,
            self.sweep_interval_seconds,
        )

    async def stop(self) -> None:
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Session store stopped")

    async def __aenter__(self) -> SessionStore:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            self.sweep_expired()

    # -- access ----------------------------------------------------------------

    def _is_expired(self, session: Session, now: float) -> bool:
        return now - session.last_activity_at > self.ttl_seconds

    def _create(self, session_id: str, history: NativeHistory) -> Session:
        now = self._clock()
        session = Session(
            session_id=session_id,
            provider=history.provider,
            native_history=history,
            created_at=now,
            last_activity_at=now,
        )
        self._sessions[session_id] = session
        logger.info("Created session %s (%s)", session_id, history.provider.value)
        return session

    def get(self, session_id: str) -> Session | None:
        """Return the live session and mark it active, or None if absent or expired."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        now = self._clock()
        if self._is_expired(session, now):
            self._drop(session_id)
            logger.info("Session %s expired", session_id)
            return None
        session.last_activity_at = now
        return session

    def get_or_create(self, session_id: str, default_provider: ProviderName) -> Session:
        session = self.get(session_id)
        if session is not None:
            return session
        try:
            provider = ProviderName(default_provider)
        except ValueError as exc:
            raise UnknownProviderError(default_provider) from exc
        return self._create(session_id, NativeHistory(provider=provider))

    def update_history(self, session_id: str, history: NativeHistory) -> Session:
        """
        Store ``history`` for the session, keeping only the newest
        ``max_history_length`` entries. A session evicted mid-turn is recreated.
        """
        if len(history) > self.max_history_length:
            logger.debug(
                "Truncating history of session %s from %d to %d entries",
                session_id,
                len(history),
                self.max_history_length,
            )
            history = history.tail(self.max_history_length)

        session = self._sessions.get(session_id)
        if session is None:
            session = self._create(session_id, history)
        else:
            session.native_history = history
            session.provider = history.provider
            session.last_activity_at = self._clock()
        logger.debug("Session %s history now %d entries", session_id, len(history))
        return session

    def delete(self, session_id: str) -> bool:
        removed = self._drop(session_id)
        if removed:
            logger.info("Deleted session %s", session_id)
        return removed

    def clear(self) -> None:
        self._sessions.clear()
        self._locks = {sid: lock for sid, lock in self._locks.items() if lock.locked()}

    def count(self) -> int:
        return len(self._sessions)

    def sweep_expired(self) -> int:
        """Drop every expired session; returns how many were dropped."""
        now = self._clock()
        expired = [sid for sid, s in self._sessions.items() if self._is_expired(s, now)]
        for session_id in expired:
            self._drop(session_id)
        if expired:
            logger.info("Swept %d expired sessions, %d remaining", len(expired), len(self._sessions))
        return len(expired)

    def _drop(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        lock = self._locks.get(session_id)
        if lock is not None and not lock.locked():
            del self._locks[session_id]
        return removed

    @contextlib.asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        """Serialize turns on one session id."""
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        async with lock:
            yield

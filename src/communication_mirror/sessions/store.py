"""
In-memory session store with idle expiry.

Each session keeps its most recent `max_interactions` interactions. Any
successful read or write touches `last_accessed_at`; a periodic sweep
evicts sessions idle for longer than `ttl_seconds`.

Locking:
- A map-level lock guards membership (insert, remove, lookup)
- Each entry has its own lock guarding `last_accessed_at` and interactions
- The two are never held together, so unrelated sessions never serialize
  on each other beyond the brief map lookup
"""

import asyncio
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import structlog

from communication_mirror.models.analysis_models import AnalysisBundle
from communication_mirror.models.session_models import Interaction, Session
from communication_mirror.monitoring.metrics import active_sessions, sessions_evicted_total
from communication_mirror.sessions.context_formatter import format_context

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _Entry:
    __slots__ = ("session", "lock", "removed")

    def __init__(self, session: Session):
        self.session = session
        self.lock = threading.Lock()
        self.removed = False


class SessionStore:
    """
    Bounded, expiring conversation history.

    Attributes:
        max_interactions: Interactions retained per session (oldest dropped first)
        ttl_seconds: Idle time after which the sweep evicts a session
        sweep_interval_seconds: Delay between background sweeps
    """

    def __init__(
        self,
        max_interactions: int = 10,
        ttl_seconds: float = 86400,
        sweep_interval_seconds: float = 3600,
        clock: Clock = utc_now,
    ):
        if max_interactions < 1:
            raise ValueError("max_interactions must be >= 1")
        self.max_interactions = max_interactions
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._entries

    # === Internals ===

    def _lookup(self, session_id: str) -> Optional[_Entry]:
        with self._lock:
            return self._entries.get(session_id)

    def _unlink(self, session_id: str, entry: _Entry) -> None:
        with self._lock:
            if self._entries.get(session_id) is entry:
                del self._entries[session_id]
            active_sessions.set(len(self._entries))

    @staticmethod
    def _snapshot(session: Session) -> Session:
        return replace(session, interactions=list(session.interactions))

    # === Sessions ===

    def create_session(self) -> Session:
        """Create an empty session with a fresh random id."""
        now = self._clock()
        session = Session(id=str(uuid.uuid4()), created_at=now, last_accessed_at=now)
        entry = _Entry(session)
        with self._lock:
            self._entries[session.id] = entry
            active_sessions.set(len(self._entries))
        logger.info("Session created", session_id=session.id)
        return self._snapshot(session)

    def get_session(self, session_id: str) -> Optional[Session]:
        """
        Return a copy of the session and touch it, or None if absent.

        This touch is what keeps an active session alive.
        """
        entry = self._lookup(session_id)
        if entry is None:
            return None
        with entry.lock:
            if entry.removed:
                return None
            entry.session.last_accessed_at = self._clock()
            return self._snapshot(entry.session)

    def delete_session(self, session_id: str) -> bool:
        """Remove a session. Returns False if it did not exist."""
        entry = self._lookup(session_id)
        if entry is None:
            return False
        with entry.lock:
            if entry.removed:
                return False
            entry.removed = True
        self._unlink(session_id, entry)
        logger.info("Session deleted", session_id=session_id)
        return True

    # === Interactions ===

    def add_interaction(self, session_id: str, message: str, analysis: AnalysisBundle) -> bool:
        """
        Append one interaction, keeping only the most recent `max_interactions`.

        Returns:
            False if the session does not exist
        """
        entry = self._lookup(session_id)
        if entry is None:
            return False
        with entry.lock:
            if entry.removed:
                return False
            now = self._clock()
            session = entry.session
            session.interactions.append(
                Interaction(message=message, analysis=analysis, timestamp=now)
            )
            if len(session.interactions) > self.max_interactions:
                session.interactions = session.interactions[-self.max_interactions:]
            session.last_accessed_at = now
            count = len(session.interactions)
        logger.debug("Interaction added", session_id=session_id, interaction_count=count)
        return True

    def get_interactions(self, session_id: str) -> list[Interaction]:
        """Copy of the retained interactions, oldest first. Empty if absent."""
        session = self.get_session(session_id)
        return session.interactions if session is not None else []

    def format_context(self, session_id: str) -> Optional[str]:
        """Prompt-ready context block, or None when there is nothing to show."""
        return format_context(self.get_interactions(session_id), self._clock())

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            entries = list(self._entries.values())
        total_interactions = 0
        for entry in entries:
            with entry.lock:
                total_interactions += len(entry.session.interactions)
        return {
            "total_sessions": len(entries),
            "total_interactions": total_interactions,
        }

    # === Expiry ===

    def sweep(self) -> int:
        """
        Evict every session idle longer than `ttl_seconds`.

        Returns:
            Number of sessions evicted
        """
        now = self._clock()
        with self._lock:
            candidates = list(self._entries.items())

        evicted = 0
        for session_id, entry in candidates:
            with entry.lock:
                if entry.removed or not entry.session.is_idle_longer_than(self.ttl_seconds, now):
                    continue
                entry.removed = True
            self._unlink(session_id, entry)
            evicted += 1

        if evicted:
            sessions_evicted_total.inc(evicted)
            logger.info("Expired sessions evicted", evicted=evicted, remaining=len(self))
        return evicted

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            try:
                self.sweep()
            except Exception as e:
                logger.error("Session sweep failed", error=str(e), exc_info=True)

    def start_sweeper(self) -> asyncio.Task:
        """Start the periodic sweep on the running loop. Idempotent."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop(), name="session-sweeper")
            logger.info("Session sweeper started", interval_seconds=self.sweep_interval_seconds)
        return self._sweeper

    async def stop_sweeper(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        task, self._sweeper = self._sweeper, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Session sweeper stopped")

    async def dispose(self) -> None:
        """Stop the sweeper and drop every session."""
        await self.stop_sweeper()
        with self._lock:
            for entry in self._entries.values():
                entry.removed = True
            self._entries.clear()
            active_sessions.set(0)

"""In-memory session registry with sliding TTL and upload cleanup."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from ..core.errors import SessionNotFoundError
from ..utils.file_helper import remove_quietly
from ..utils.logging import get_logger
from .session import Session

LOGGER = get_logger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


@dataclass(slots=True)
class _Entry:
    session: Session
    expires_at: float
    uploads: list[Path] = field(default_factory=list)


class SessionStore:
    """Maps session ids to sessions; every operation holds the single store lock.

    Reads and heartbeats push the expiry forward by ``ttl``. Entries removed
    explicitly or by the sweep take their tracked upload files with them.
    """

    def __init__(
        self,
        *,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None

    @property
    def ttl(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._entries

    def set(self, session_id: str, session: Session) -> None:
        with self._lock:
            previous = self._entries.get(session_id)
            uploads = previous.uploads if previous else []
            self._entries[session_id] = _Entry(
                session=session, expires_at=self._clock() + self._ttl, uploads=uploads
            )

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            self._purge_locked()
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            entry.expires_at = self._clock() + self._ttl
            return entry.session

    def require(self, session_id: str) -> Session:
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def heartbeat(self, session_id: str) -> bool:
        """Refresh the TTL without touching session content."""
        with self._lock:
            self._purge_locked()
            entry = self._entries.get(session_id)
            if entry is None:
                return False
            entry.expires_at = self._clock() + self._ttl
            return True

    def add_upload(self, session_id: str, path: Path | str) -> bool:
        if not session_id or not path:
            return False
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return False
            entry.uploads.append(Path(path))
            return True

    def uploads_for(self, session_id: str) -> list[Path]:
        with self._lock:
            entry = self._entries.get(session_id)
            return list(entry.uploads) if entry else []

    def delete(self, session_id: str) -> bool:
        with self._lock:
            entry = self._entries.pop(session_id, None)
        if entry is None:
            return False
        self._cleanup(session_id, entry, reason="deleted")
        return True

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked()

    def _purge_locked(self) -> int:
        now = self._clock()
        expired = [sid for sid, entry in self._entries.items() if entry.expires_at <= now]
        for session_id in expired:
            self._cleanup(session_id, self._entries.pop(session_id), reason="expired")
        return len(expired)

    def _cleanup(self, session_id: str, entry: _Entry, *, reason: str) -> None:
        removed = remove_quietly(entry.uploads)
        LOGGER.info(
            "Session %s removed reason=%s uploads_removed=%d",
            session_id,
            reason,
            removed,
            extra={"event": "session.removed"},
        )

    def start_sweeper(self, interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS) -> None:
        """Launch the background purge thread; call once, stop with ``stop()``."""
        if interval <= 0:
            raise ValueError("interval must be positive")
        if self._sweeper is not None:
            raise RuntimeError("sweeper already started")
        self._stop.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            args=(interval,),
            name="session-sweeper",
            daemon=True,
        )
        self._sweeper.start()

    def _sweep_loop(self, interval: float) -> None:
        while not self._stop.wait(interval):
            purged = self.purge_expired()
            if purged:
                LOGGER.info("Sweeper purged %d expired sessions", purged)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is not None:
            sweeper.join(timeout)

    def __enter__(self) -> "SessionStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


__all__ = ["DEFAULT_SWEEP_INTERVAL_SECONDS", "DEFAULT_TTL_SECONDS", "SessionStore"]

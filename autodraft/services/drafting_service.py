"""Session lifecycle on top of the generation agent and the session store."""

from __future__ import annotations

import uuid
from pathlib import Path

from ..ai.agent import GenerationAgent
from ..ai.models import Spec
from ..app.session import Session
from ..app.session_store import SessionStore
from ..core.context import CallContext
from ..core.errors import SessionNotFoundError, ValidationError
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


class DraftingService:
    """Creates, revises and retires revision threads."""

    def __init__(self, store: SessionStore, agent: GenerationAgent) -> None:
        self._store = store
        self._agent = agent

    @property
    def store(self) -> SessionStore:
        return self._store

    def create_session(self, spec: Spec, *, context: CallContext | None = None) -> Session:
        """Generate the first draft; the session is only registered if that succeeds."""
        if not spec.topic.strip():
            raise ValidationError("topic is required")
        session = Session(uuid.uuid4().hex, spec, self._agent)
        session.propose(context=context)
        self._store.set(session.id, session)
        LOGGER.info(
            "Session %s created topic=%s style=%s",
            session.id,
            spec.topic,
            spec.style or "-",
            extra={"event": "session.created"},
        )
        return session

    def revise(
        self, session_id: str, comment: str, *, context: CallContext | None = None
    ) -> Session:
        session = self.get(session_id)
        session.revise(comment, context=context)
        return session

    def get(self, session_id: str) -> Session:
        if not session_id:
            raise ValidationError("session_id is required")
        return self._store.require(session_id)

    def heartbeat(self, session_id: str) -> bool:
        return self._store.heartbeat(session_id)

    def delete(self, session_id: str) -> bool:
        return self._store.delete(session_id)

    def register_upload(self, session_id: str, path: Path | str) -> None:
        """Attach a stored upload so it is removed together with the session."""
        if not self._store.add_upload(session_id, path):
            raise SessionNotFoundError(session_id)


__all__ = ["DraftingService"]

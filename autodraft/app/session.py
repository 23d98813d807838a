"""One article revision thread: a spec, its current draft, and the turn history."""

from __future__ import annotations

import threading
from typing import Any

from ..ai.agent import GenerationAgent
from ..ai.models import INITIAL_COMMENT, INITIAL_SUMMARY, REVISION_SUMMARY, Draft, Spec, Turn
from ..core.context import CallContext
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


class Session:
    """Holds generation state for one topic.

    ``history`` only ever grows and ``draft`` always equals the draft of the
    latest successful turn. A failed generation leaves both untouched.
    Calls on the same session are serialized by a per-session lock.
    """

    def __init__(self, session_id: str, spec: Spec, agent: GenerationAgent) -> None:
        self.id = session_id
        self.spec = spec
        self._agent = agent
        self._draft: Draft | None = None
        self._history: list[Turn] = []
        self._lock = threading.Lock()

    @property
    def draft(self) -> Draft | None:
        return self._draft

    @property
    def history(self) -> tuple[Turn, ...]:
        return tuple(self._history)

    @property
    def has_draft(self) -> bool:
        return self._draft is not None

    def propose(self, *, context: CallContext | None = None) -> Draft:
        with self._lock:
            draft = self._agent.generate(
                self.spec, None, tuple(self._history), "", context=context
            )
            self._record(INITIAL_COMMENT, draft, INITIAL_SUMMARY)
            return draft

    def revise(self, comment: str, *, context: CallContext | None = None) -> Draft:
        with self._lock:
            draft = self._agent.generate(
                self.spec, self._draft, tuple(self._history), comment, context=context
            )
            self._record(comment, draft, REVISION_SUMMARY)
            return draft

    def _record(self, comment: str, draft: Draft, summary: str) -> None:
        self._draft = draft
        self._history.append(Turn(comment=comment, draft=draft, summary=summary))
        LOGGER.info(
            "Session %s recorded turn=%d summary=%s title=%s",
            self.id,
            len(self._history),
            summary,
            draft.title,
        )

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "session_id": self.id,
                "spec": self.spec.to_dict(),
                "draft": self._draft.to_dict() if self._draft else None,
                "history": [turn.to_dict() for turn in self._history],
            }


__all__ = ["Session"]

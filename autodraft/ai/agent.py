"""Generation agent: prompt building, model call, post-processing."""

from __future__ import annotations

from typing import Sequence

from ..core.context import CallContext
from ..core.errors import ConfigurationError
from ..utils.logging import get_logger
from .llm import LLMClient
from .models import Draft, Spec, Turn
from .postprocess import post_process
from .prompt import build_initial_prompt, build_revision_prompt

LOGGER = get_logger(__name__)


class GenerationAgent:
    """Stateless apart from the model client it delegates to."""

    def __init__(self, llm: LLMClient | None) -> None:
        if llm is None:
            raise ConfigurationError("llm client is required")
        self._llm = llm

    def generate(
        self,
        spec: Spec,
        previous: Draft | None,
        history: Sequence[Turn],
        comment: str = "",
        *,
        context: CallContext | None = None,
    ) -> Draft:
        """First draft when ``previous`` is None, otherwise a revision driven by ``comment``.

        Model failures propagate unchanged; empty output raises
        ``EmptyModelOutputError``.
        """
        if previous is None:
            prompt = build_initial_prompt(spec)
            mode = "initial"
        else:
            prompt = build_revision_prompt(spec, previous, comment, history)
            mode = "revision"

        LOGGER.info("Generating %s draft topic=%s history=%d", mode, spec.topic, len(history))
        raw = self._llm.complete(prompt, context=context)
        draft = post_process(raw, spec)
        LOGGER.info("Generated %s draft title=%s chars=%d", mode, draft.title, len(draft.markdown))
        return draft


__all__ = ["GenerationAgent"]

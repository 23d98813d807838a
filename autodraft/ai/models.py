"""Data model for article specs, drafts, and revision turns."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Mapping

INITIAL_COMMENT = "首稿"
INITIAL_SUMMARY = "首稿"
REVISION_SUMMARY = "修订"


def _str_list(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    return tuple(str(item).strip() for item in value if str(item).strip())


@dataclass(frozen=True, slots=True)
class Spec:
    """What the operator wants written; fixed for the lifetime of a session."""

    topic: str
    outline: tuple[str, ...] = ()
    words: int = 0
    constraints: tuple[str, ...] = ()
    style: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Spec":
        words_raw = data.get("words") or 0
        try:
            words = int(words_raw)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"words must be an integer, got {words_raw!r}") from exc
        return cls(
            topic=str(data.get("topic", "")).strip(),
            outline=_str_list(data.get("outline")),
            words=max(0, words),
            constraints=_str_list(data.get("constraints")),
            style=str(data.get("style") or "").strip(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "outline": list(self.outline),
            "words": self.words,
            "constraints": list(self.constraints),
            "style": self.style,
        }


@dataclass(frozen=True, slots=True)
class Draft:
    """A Markdown article produced by the model."""

    title: str
    digest: str
    markdown: str
    cover_hint: str = ""
    inline_image_hints: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "digest": self.digest,
            "markdown": self.markdown,
            "cover_hint": self.cover_hint,
            "inline_image_hints": list(self.inline_image_hints),
        }


@dataclass(frozen=True, slots=True)
class Turn:
    """One generation or revision event; never mutated once recorded."""

    comment: str
    draft: Draft
    summary: str
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "comment": self.comment,
            "draft": self.draft.to_dict(),
            "summary": self.summary,
            "created_at": self.created_at.isoformat(),
        }


__all__ = [
    "INITIAL_COMMENT",
    "INITIAL_SUMMARY",
    "REVISION_SUMMARY",
    "Draft",
    "Spec",
    "Turn",
]

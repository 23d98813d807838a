"""Data models for the WeChat draft publishing workflow."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class DraftArticle:
    """One article as the ``draft/add`` endpoint expects it; built per publish call."""

    title: str
    author: str
    digest: str
    content: str
    thumb_media_id: str
    need_open_comment: bool = False
    only_fans_can_comment: bool = False


@dataclass(frozen=True, slots=True)
class PublishOutcome:
    """Result of publishing a session's draft."""

    media_id: str
    title: str
    cover_path: Path

    def to_dict(self) -> dict[str, str]:
        return {
            "media_id": self.media_id,
            "title": self.title,
            "cover_path": str(self.cover_path),
        }

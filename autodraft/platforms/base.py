"""Base contracts for draft publishing platforms."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..core.context import CallContext
from ..core.errors import ValidationError


def _blank(value: Path | str | None) -> bool:
    # Path("") normalizes to "."
    return value is None or str(value).strip() in {"", "."}


@dataclass(frozen=True, slots=True)
class PublishParams:
    """Everything one publish call needs; no lifecycle beyond the call."""

    markdown_path: Path
    title: str
    cover_path: Path
    author: str = ""
    digest: str = ""

    def validate(self) -> None:
        if _blank(self.markdown_path) or not self.title.strip() or _blank(self.cover_path):
            raise ValidationError("markdown path, title, and cover path are required")


class ImageUploader(Protocol):
    """Uploads an in-article image and returns its hosted URL."""

    def upload_content_image(self, image: Path, *, context: CallContext | None = None) -> str:
        ...


class MediaUploader(ImageUploader, Protocol):
    """Adds permanent-material uploads (covers) on top of content images."""

    def upload_material(self, image: Path, *, context: CallContext | None = None) -> str:
        ...


class ContentPublisher(ABC):
    """Publishes a Markdown article to a concrete platform's draft box."""

    @abstractmethod
    def prepare(self, *, context: CallContext | None = None) -> None:
        """Execute pre-flight work, e.g. acquiring credentials."""

    @abstractmethod
    def publish_draft(self, params: PublishParams, *, context: CallContext | None = None) -> str:
        """Publish and return the platform's draft identifier."""

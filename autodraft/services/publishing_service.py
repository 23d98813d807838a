"""Publishing a session's current draft to the platform draft box."""

from __future__ import annotations

import tempfile
import threading
from pathlib import Path
from typing import Callable

from ..app.session_store import SessionStore
from ..core.context import CallContext
from ..core.errors import ValidationError
from ..platforms import ContentPublisher, PublishParams
from ..utils.file_helper import (
    TEMP_DRAFT_PREFIX,
    TEMP_DRAFT_SUFFIX,
    remove_older_than,
    remove_quietly,
    write_temp_markdown,
)
from ..utils.logging import get_logger
from .wechat_models import PublishOutcome

LOGGER = get_logger(__name__)

PublisherFactory = Callable[[], ContentPublisher]


class PublishingService:
    """Turns a session draft into publish parameters and hands them to the publisher.

    The publisher is built on first use and then shared; building it is what
    acquires the platform credentials, so a misconfigured account only fails
    once someone actually publishes.
    """

    def __init__(
        self,
        store: SessionStore,
        publisher_factory: PublisherFactory,
        *,
        default_cover: Path | None = None,
        temp_dir: Path | None = None,
    ) -> None:
        self._store = store
        self._factory = publisher_factory
        self._default_cover = default_cover
        self._temp_dir = temp_dir
        self._publisher: ContentPublisher | None = None
        self._publisher_lock = threading.Lock()

    def _ensure_publisher(self) -> ContentPublisher:
        with self._publisher_lock:
            if self._publisher is None:
                self._publisher = self._factory()
            return self._publisher

    def _resolve_cover(self, cover_path: Path | str | None) -> Path:
        if cover_path and str(cover_path).strip():
            cover = Path(cover_path)
        elif self._default_cover is not None:
            cover = self._default_cover
        else:
            raise ValidationError("cover_path is required")
        if not cover.is_file():
            raise ValidationError(f"cover not found: {cover}")
        return cover

    def publish_session(
        self,
        session_id: str,
        *,
        cover_path: Path | str | None = None,
        author: str = "",
        title: str = "",
        digest: str = "",
        context: CallContext | None = None,
    ) -> PublishOutcome:
        if not session_id:
            raise ValidationError("session_id is required")
        session = self._store.require(session_id)
        draft = session.draft
        if draft is None or not draft.markdown.strip():
            raise ValidationError("draft is empty")
        cover = self._resolve_cover(cover_path)

        final_title = title.strip() or draft.title.strip() or session.spec.topic
        final_digest = digest.strip() or draft.digest

        publisher = self._ensure_publisher()
        markdown_path = write_temp_markdown(draft.markdown, directory=self._temp_dir)
        try:
            media_id = publisher.publish_draft(
                PublishParams(
                    markdown_path=markdown_path,
                    title=final_title,
                    cover_path=cover,
                    author=author.strip(),
                    digest=final_digest,
                ),
                context=context,
            )
        finally:
            remove_quietly([markdown_path])

        LOGGER.info(
            "Session %s published media_id=%s title=%s",
            session_id,
            media_id,
            final_title,
            extra={"event": "session.published"},
        )
        return PublishOutcome(media_id=media_id, title=final_title, cover_path=cover)

    def cleanup_stale_drafts(self, max_age_seconds: float) -> int:
        """Remove temp drafts left behind by interrupted publishes."""
        directory = self._temp_dir or Path(tempfile.gettempdir())
        removed = remove_older_than(
            directory.glob(f"{TEMP_DRAFT_PREFIX}*{TEMP_DRAFT_SUFFIX}"), max_age_seconds
        )
        if removed:
            LOGGER.info("Removed %d stale temp draft(s) from %s", removed, directory)
        return removed


__all__ = ["PublishingService", "PublisherFactory"]

"""Components for the WeChat draft publishing workflow."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Sequence

try:
    from markdown import markdown
except ModuleNotFoundError as exc:
    raise RuntimeError(
        "缺少 markdown 库，请先执行 'pip install markdown' 或安装项目依赖。"
    ) from exc

from ..core.context import CallContext
from ..platforms.base import ImageUploader
from ..utils.html import normalize_for_wechat
from ..utils.logging import get_logger
from .wechat_models import DraftArticle

LOGGER = get_logger(__name__)

_MARKDOWN_IMAGE_PATTERN = re.compile(r"!\[[^\]]*\]\(([^)]+)\)")
_PASSTHROUGH_PREFIXES = ("http://", "https://", "data:")

DEFAULT_DIGEST_LIMIT = 120
DIGEST_MAX_BYTES = 256


def default_digest(markdown_text: str, limit: int = DEFAULT_DIGEST_LIMIT) -> str:
    """Whitespace-collapsed body text cut at ``limit`` characters."""
    joined = " ".join(markdown_text.split())
    return joined[:limit]


class InlineImageResolver:
    """Uploads local Markdown image references and swaps in the hosted URLs.

    Remote (http/https) and ``data:`` references pass through. Every local
    reference is uploaded on its own, repeated paths included.
    """

    def __init__(self, uploader: ImageUploader) -> None:
        self._uploader = uploader

    @staticmethod
    def is_passthrough(reference: str) -> bool:
        return reference.startswith(_PASSTHROUGH_PREFIXES)

    @staticmethod
    def local_path(reference: str, base_dir: Path) -> Path:
        """Use the reference as-is when absolute or present from the CWD, else relative to ``base_dir``."""
        candidate = Path(reference)
        if candidate.is_absolute() or candidate.exists():
            return candidate
        return base_dir / reference

    def references(self, markdown_text: str) -> list[str]:
        return [match.group(1).strip() for match in _MARKDOWN_IMAGE_PATTERN.finditer(markdown_text)]

    def resolve(
        self,
        markdown_text: str,
        base_dir: Path,
        *,
        context: CallContext | None = None,
    ) -> str:
        pieces: list[str] = []
        last = 0
        uploaded = 0
        for match in _MARKDOWN_IMAGE_PATTERN.finditer(markdown_text):
            start, end = match.span(1)
            pieces.append(markdown_text[last:start])
            reference = match.group(1).strip()
            if self.is_passthrough(reference):
                pieces.append(reference)
            else:
                path = self.local_path(reference, base_dir)
                pieces.append(self._uploader.upload_content_image(path, context=context))
                uploaded += 1
            last = end
        pieces.append(markdown_text[last:])
        if uploaded:
            LOGGER.info("Replaced %d inline image reference(s)", uploaded)
        return "".join(pieces)


class ContentBuilder:
    """Renders Markdown to HTML and applies WeChat renderer fixes."""

    def __init__(self, *, extensions: Sequence[str] = ("extra",)) -> None:
        self._extensions = list(extensions)

    def to_html(self, markdown_text: str) -> str:
        return markdown(markdown_text, extensions=self._extensions)

    def normalize(self, html: str) -> str:
        return normalize_for_wechat(html)

    def build(self, markdown_text: str) -> str:
        return self.normalize(self.to_html(markdown_text))


class PayloadBuilder:
    """Builds the JSON payload for the WeChat Draft API."""

    def build(self, article: DraftArticle) -> dict[str, object]:
        if not article.thumb_media_id:
            raise ValueError("thumb_media_id is required for a draft article")
        return {
            "articles": [
                {
                    "title": article.title,
                    "author": article.author,
                    "digest": self._truncate_utf8(article.digest, max_bytes=DIGEST_MAX_BYTES),
                    "content": article.content,
                    "thumb_media_id": article.thumb_media_id,
                    "need_open_comment": 1 if article.need_open_comment else 0,
                    "only_fans_can_comment": 1 if article.only_fans_can_comment else 0,
                }
            ]
        }

    def _truncate_utf8(self, text: str, *, max_bytes: int) -> str:
        encoded = text.encode("utf-8")
        if len(encoded) <= max_bytes:
            return text
        return encoded[:max_bytes].decode("utf-8", errors="ignore")

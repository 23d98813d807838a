"""WeChat draft publisher: Markdown in, draft-box media_id out."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping, TypeVar

import requests

from ...core.context import CallContext, ensure_context
from ...core.errors import AuthenticationError, CallCancelledError, PublishError
from ...security import SecretProvider, default_provider
from ...services.wechat_components import (
    DEFAULT_DIGEST_LIMIT,
    ContentBuilder,
    InlineImageResolver,
    PayloadBuilder,
    default_digest,
)
from ...services.wechat_models import DraftArticle
from ...settings import WeChatSettings
from ...utils.file_helper import read_text
from ...utils.logging import get_logger
from ..base import ContentPublisher, MediaUploader, PublishParams
from .api import WeChatApiClient, WeChatApiError
from .credentials import WeChatCredentialStore
from .draft import WeChatDraftClient
from .media import WeChatMediaUploader

LOGGER = get_logger(__name__)

T = TypeVar("T")

_STEP_ERRORS = (WeChatApiError, OSError, ValueError)


class WeChatContentPublisher(ContentPublisher):
    """Runs the publish steps strictly in order; the first failure aborts the rest.

    Images and covers uploaded before a later failure stay on the platform;
    nothing is rolled back and nothing is retried.
    """

    def __init__(
        self,
        credential_store: WeChatCredentialStore,
        media_uploader: MediaUploader,
        draft_client: WeChatDraftClient,
        *,
        content_builder: ContentBuilder | None = None,
        payload_builder: PayloadBuilder | None = None,
        digest_limit: int = DEFAULT_DIGEST_LIMIT,
    ) -> None:
        self._credentials = credential_store
        self._media_uploader = media_uploader
        self._draft_client = draft_client
        self._image_resolver = InlineImageResolver(media_uploader)
        self._content_builder = content_builder or ContentBuilder()
        self._payload_builder = payload_builder or PayloadBuilder()
        self._digest_limit = digest_limit

    @classmethod
    def create(
        cls,
        settings: WeChatSettings,
        *,
        secrets: SecretProvider | None = None,
        env: Mapping[str, str] | None = None,
        http: requests.Session | None = None,
        digest_limit: int = DEFAULT_DIGEST_LIMIT,
        context: CallContext | None = None,
    ) -> "WeChatContentPublisher":
        """Wire the adapters and fetch the access token up front."""
        provider = secrets or default_provider(settings.as_secrets(), env=env)
        api_client = WeChatApiClient(timeout=settings.timeout, http=http)
        credentials = WeChatCredentialStore.from_secrets(provider, api_client=api_client)
        publisher = cls(
            credentials,
            WeChatMediaUploader(credentials, api_client, timeout=settings.timeout),
            WeChatDraftClient(credentials, api_client, timeout=settings.timeout),
            digest_limit=digest_limit,
        )
        publisher.prepare(context=context)
        return publisher

    def prepare(self, *, context: CallContext | None = None) -> None:
        """Acquire the access token; failure is fatal to the publisher."""
        try:
            self._credentials.get_token(context=context)
        except WeChatApiError as exc:
            raise AuthenticationError(str(exc)) from exc
        LOGGER.info("WeChat publisher ready app_id=%s", self._credentials.app_id)

    def _step(self, name: str, context: CallContext, action: Callable[[], T]) -> T:
        context.check(name)
        try:
            return action()
        except CallCancelledError:
            raise
        except _STEP_ERRORS as exc:
            raise PublishError(name, str(exc)) from exc

    def publish_draft(self, params: PublishParams, *, context: CallContext | None = None) -> str:
        params.validate()
        ctx = ensure_context(context)
        markdown_path = Path(params.markdown_path)
        cover_path = Path(params.cover_path)

        markdown_text = self._step(
            "read_markdown", ctx, lambda: read_text(markdown_path)
        )

        digest = params.digest.strip() or default_digest(markdown_text, self._digest_limit)

        with_images = self._step(
            "inline_images",
            ctx,
            lambda: self._image_resolver.resolve(
                markdown_text, markdown_path.parent, context=ctx
            ),
        )
        LOGGER.info("Processed markdown and uploaded inline images if any")

        html = self._step("markdown_to_html", ctx, lambda: self._content_builder.to_html(with_images))
        LOGGER.info("Converted Markdown to HTML chars=%d", len(html))

        html = self._step("normalize_html", ctx, lambda: self._content_builder.normalize(html))
        LOGGER.info("Normalized HTML for WeChat compatibility")

        thumb_media_id = self._step(
            "upload_cover",
            ctx,
            lambda: self._media_uploader.upload_material(cover_path, context=ctx),
        )
        LOGGER.info("Uploaded cover image %s -> media_id=%s", cover_path, thumb_media_id)

        article = DraftArticle(
            title=params.title,
            author=params.author,
            digest=digest,
            content=html,
            thumb_media_id=thumb_media_id,
        )
        media_id = self._step(
            "add_draft",
            ctx,
            lambda: self._draft_client.create_draft(
                self._payload_builder.build(article), context=ctx
            ),
        )
        LOGGER.info(
            "Draft created successfully media_id=%s",
            media_id,
            extra={"event": "publish.completed"},
        )
        return media_id

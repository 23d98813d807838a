"""WeChat image uploads: permanent material (cover) and in-article images."""

from __future__ import annotations

from pathlib import Path

from ...core.context import CallContext, ensure_context
from ...utils.logging import get_logger
from .api import ADD_MATERIAL_URL, UPLOAD_IMG_URL, WeChatApiClient, check_response
from .credentials import WeChatCredentialStore

LOGGER = get_logger(__name__)


class WeChatMediaUploader:
    """Uploads covers to 永久素材库 and body images to the content-image endpoint."""

    def __init__(
        self,
        credential_store: WeChatCredentialStore,
        api_client: WeChatApiClient,
        *,
        timeout: float = 60.0,
    ) -> None:
        self._credentials = credential_store
        self._api = api_client
        self._timeout = timeout

    def upload_material(self, image: Path, *, context: CallContext | None = None) -> str:
        """Upload a cover image and return its ``media_id``."""
        ctx = ensure_context(context)
        token = self._credentials.get_token(context=ctx)
        ctx.check("upload_material")
        data = self._api.post_file(
            ADD_MATERIAL_URL,
            image,
            params={"access_token": token.value, "type": "image"},
            timeout=ctx.timeout_for(self._timeout),
        )
        media_id = check_response(data, "上传封面图片被微信拒绝", success_field="media_id")
        LOGGER.info("Uploaded material %s -> media_id=%s", image, media_id)
        return media_id

    def upload_content_image(self, image: Path, *, context: CallContext | None = None) -> str:
        """Upload an in-article image and return the hosted URL."""
        ctx = ensure_context(context)
        token = self._credentials.get_token(context=ctx)
        ctx.check("upload_content_image")
        data = self._api.post_file(
            UPLOAD_IMG_URL,
            image,
            params={"access_token": token.value},
            timeout=ctx.timeout_for(self._timeout),
        )
        url = check_response(data, "上传正文图片被微信拒绝", success_field="url")
        LOGGER.info("Uploaded content image %s -> %s", image, url)
        return url

"""WeChat draft management."""

from __future__ import annotations

from typing import Any, Mapping

from ...core.context import CallContext, ensure_context
from .api import ADD_DRAFT_URL, WeChatApiClient, check_response
from .credentials import WeChatCredentialStore


class WeChatDraftClient:
    """Client for creating drafts via the WeChat API."""

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

    def create_draft(
        self, payload: Mapping[str, Any], *, context: CallContext | None = None
    ) -> str:
        """Submit a draft payload and return the draft ``media_id``."""
        ctx = ensure_context(context)
        token = self._credentials.get_token(context=ctx)
        ctx.check("add_draft")
        data = self._api.post_json(
            ADD_DRAFT_URL,
            payload,
            params={"access_token": token.value},
            timeout=ctx.timeout_for(self._timeout),
        )
        return check_response(data, "草稿提交被微信拒绝", success_field="media_id")

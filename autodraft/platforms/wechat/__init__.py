"""WeChat platform adapters."""

from __future__ import annotations

from .api import WeChatApiClient, WeChatApiError
from .credentials import WeChatCredentialStore, WeChatToken
from .draft import WeChatDraftClient
from .media import WeChatMediaUploader
from .publisher import WeChatContentPublisher

__all__ = [
    "WeChatApiClient",
    "WeChatApiError",
    "WeChatContentPublisher",
    "WeChatCredentialStore",
    "WeChatDraftClient",
    "WeChatMediaUploader",
    "WeChatToken",
]

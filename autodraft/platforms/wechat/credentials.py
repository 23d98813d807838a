"""Credential management for WeChat integrations."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Callable

from ...core.context import CallContext, ensure_context
from ...core.errors import ConfigurationError
from ...security import SecretNotFoundError, SecretProvider
from ...utils.logging import get_logger
from .api import AccessTokenResponse, WeChatApiClient

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class WeChatToken:
    """Holds the current access token state."""

    value: str
    expires_at: datetime


class WeChatCredentialStore:
    """Keeps AppID/AppSecret and an in-memory access token shared across requests.

    Refresh is single-flight: the lock is held across the exchange, so
    concurrent callers that find the token stale wait for one request and
    then reuse its result.
    """

    _REFRESH_MARGIN = timedelta(minutes=5)

    def __init__(
        self,
        *,
        api_client: WeChatApiClient,
        app_id: str,
        app_secret: str,
        clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC),
    ) -> None:
        if not app_id or not app_secret:
            raise ConfigurationError("config must include app_id and app_secret")
        self._api_client = api_client
        self._app_id = app_id
        self._app_secret = app_secret
        self._clock = clock
        self._lock = threading.Lock()
        self._token: WeChatToken | None = None

    @classmethod
    def from_secrets(
        cls, provider: SecretProvider, *, api_client: WeChatApiClient
    ) -> "WeChatCredentialStore":
        try:
            app_id = provider.get_secret("wechat.app_id")
            app_secret = provider.get_secret("wechat.app_secret")
        except SecretNotFoundError as exc:
            raise ConfigurationError(
                f"缺少微信公众号凭证 {exc.args[0]}，请设置 WECHAT_APP_ID / WECHAT_APP_SECRET"
            ) from exc
        return cls(api_client=api_client, app_id=app_id, app_secret=app_secret)

    @property
    def app_id(self) -> str:
        return self._app_id

    @property
    def cached_token(self) -> WeChatToken | None:
        return self._token

    def get_token(
        self,
        *,
        force_refresh: bool = False,
        context: CallContext | None = None,
    ) -> WeChatToken:
        """Return a valid access token, refreshing if needed."""
        with self._lock:
            token = self._token
            if not force_refresh and token is not None and not self._is_expired(token):
                return token
            self._token = self._request_new_token(ensure_context(context))
            return self._token

    def _request_new_token(self, context: CallContext) -> WeChatToken:
        context.check("access_token")
        response: AccessTokenResponse = self._api_client.fetch_access_token(
            self._app_id,
            self._app_secret,
            timeout=context.timeout_for(self._api_client.timeout),
        )
        LOGGER.info("Fetched WeChat access token expires_at=%s", response.expires_at.isoformat())
        return WeChatToken(value=response.token, expires_at=response.expires_at)

    def _is_expired(self, token: WeChatToken) -> bool:
        return token.expires_at <= self._clock() + self._REFRESH_MARGIN

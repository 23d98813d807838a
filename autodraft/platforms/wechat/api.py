"""WeChat API helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
import mimetypes
from typing import Any, Mapping

import requests

API_BASE = "https://api.weixin.qq.com/cgi-bin"
TOKEN_URL = f"{API_BASE}/token"
ADD_MATERIAL_URL = f"{API_BASE}/material/add_material"
UPLOAD_IMG_URL = f"{API_BASE}/media/uploadimg"
ADD_DRAFT_URL = f"{API_BASE}/draft/add"


class WeChatApiError(RuntimeError):
    """Raised when WeChat API calls fail."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = dict(details or {})

    @property
    def errcode(self) -> int | None:
        code = self.details.get("errcode")
        return code if isinstance(code, int) else None

    def __str__(self) -> str:
        base = super().__str__()
        if not self.details:
            return base
        try:
            detail_repr = json.dumps(self.details, ensure_ascii=False)
        except TypeError:
            detail_repr = str(self.details)
        return f"{base} | 详情: {detail_repr}"


@dataclass(slots=True)
class AccessTokenResponse:
    """Parsed access token response."""

    token: str
    expires_at: datetime


def check_response(data: Mapping[str, Any], message: str, *, success_field: str) -> Any:
    """Apply WeChat's error convention and return ``data[success_field]``.

    A non-zero ``errcode`` or a missing success field is a failure; the code
    and message travel in the error details.
    """
    errcode = data.get("errcode")
    value = data.get(success_field)
    if errcode not in (0, None) or not value:
        raise WeChatApiError(
            message,
            details={"errcode": errcode, "errmsg": data.get("errmsg")},
        )
    return value


class WeChatApiClient:
    """Thin transport for the four Official Account endpoints used by drafts."""

    def __init__(
        self,
        *,
        timeout: float = 60.0,
        http: requests.Session | None = None,
    ) -> None:
        self._timeout = timeout
        self._http = http or requests.Session()

    @property
    def timeout(self) -> float:
        return self._timeout

    def _decode(self, response: requests.Response, context: Mapping[str, Any]) -> dict[str, Any]:
        try:
            data = response.json()
        except (ValueError, json.JSONDecodeError) as exc:
            raise WeChatApiError(
                "解析微信响应失败",
                details={**context, "response": response.text[:200]},
            ) from exc
        if not isinstance(data, dict):
            raise WeChatApiError("微信响应格式不正确", details={**context, "response": data})
        return data

    def fetch_access_token(
        self, app_id: str, app_secret: str, *, timeout: float | None = None
    ) -> AccessTokenResponse:
        """Exchange AppID/AppSecret for an access token."""
        params = {
            "grant_type": "client_credential",
            "appid": app_id,
            "secret": app_secret,
        }
        try:
            response = self._http.get(TOKEN_URL, params=params, timeout=timeout or self._timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise WeChatApiError("无法连接至微信服务器", details={"reason": str(exc)}) from exc

        data = self._decode(response, {"endpoint": "token"})
        token = check_response(data, "获取 access_token 失败", success_field="access_token")

        expires_raw = data.get("expires_in", 7200)
        try:
            expires_seconds = int(expires_raw)
        except (TypeError, ValueError) as exc:
            raise WeChatApiError(
                "expires_in 字段格式不正确", details={"expires_in": expires_raw}
            ) from exc

        expires_at = datetime.now(tz=UTC) + timedelta(seconds=expires_seconds)
        return AccessTokenResponse(token=token, expires_at=expires_at)

    def post_file(
        self,
        url: str,
        path: Path,
        *,
        params: Mapping[str, str],
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Upload ``path`` as the multipart ``media`` field."""
        mime_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
        with path.open("rb") as stream:
            files = {"media": (path.name, stream, mime_type)}
            try:
                response = self._http.post(
                    url, params=params, files=files, timeout=timeout or self._timeout
                )
                response.raise_for_status()
            except requests.RequestException as exc:
                raise WeChatApiError(
                    "上传文件失败",
                    details={"path": str(path), "reason": str(exc)},
                ) from exc
        return self._decode(response, {"path": str(path)})

    def post_json(
        self,
        url: str,
        payload: Mapping[str, Any],
        *,
        params: Mapping[str, str],
        timeout: float | None = None,
    ) -> dict[str, Any]:
        # WeChat stores \uXXXX escapes literally, so CJK must go out unescaped.
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        try:
            response = self._http.post(
                url,
                params=params,
                data=body,
                headers={"Content-Type": "application/json; charset=utf-8"},
                timeout=timeout or self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise WeChatApiError("请求微信接口失败", details={"reason": str(exc)}) from exc
        return self._decode(response, {"endpoint": url.rsplit("/cgi-bin/", 1)[-1]})


__all__ = [
    "ADD_DRAFT_URL",
    "ADD_MATERIAL_URL",
    "TOKEN_URL",
    "UPLOAD_IMG_URL",
    "AccessTokenResponse",
    "WeChatApiClient",
    "WeChatApiError",
    "check_response",
]

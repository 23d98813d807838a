from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from types import SimpleNamespace

import pytest

from autodraft.core import (
    AuthenticationError,
    CallCancelledError,
    CallContext,
    ConfigurationError,
    PublishError,
    ValidationError,
)
from autodraft.platforms import PublishParams
from autodraft.platforms.wechat import WeChatApiError, WeChatContentPublisher
from autodraft.security import MappingSecretProvider
from autodraft.services.wechat_components import default_digest
from autodraft.settings import WeChatSettings


class StubCredentials:
    app_id = "wx-app"

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls = 0

    def get_token(self, *, force_refresh: bool = False, context=None):
        self.calls += 1
        if self.error:
            raise self.error
        return SimpleNamespace(value="TOKEN", expires_at=datetime.now(tz=UTC) + timedelta(hours=2))


class StubUploader:
    def __init__(self, *, cover_error: Exception | None = None) -> None:
        self.cover_error = cover_error
        self.images: list[Path] = []
        self.covers: list[Path] = []

    def upload_content_image(self, image: Path, *, context=None) -> str:
        self.images.append(image)
        return f"https://mmbiz.qpic.cn/{image.name}"

    def upload_material(self, image: Path, *, context=None) -> str:
        self.covers.append(image)
        if self.cover_error:
            raise self.cover_error
        return "THUMB_ID"


class StubDraftClient:
    def __init__(self) -> None:
        self.payloads: list[dict[str, object]] = []

    def create_draft(self, payload, *, context=None) -> str:
        self.payloads.append(payload)
        return "DRAFT_ID"


@pytest.fixture
def article_files(tmp_path: Path) -> tuple[Path, Path]:
    markdown_path = tmp_path / "draft.md"
    markdown_path.write_text(
        "# 为什么熬夜想吃甜食\n\n正文第一段。\n\n![配图](img1.png)\n\n1. 血糖\n2. 激素\n",
        encoding="utf-8",
    )
    cover = tmp_path / "cover.jpg"
    cover.write_bytes(b"jpg")
    return markdown_path, cover


def _publisher(uploader: StubUploader | None = None, drafts: StubDraftClient | None = None):
    uploader = uploader or StubUploader()
    drafts = drafts or StubDraftClient()
    return WeChatContentPublisher(StubCredentials(), uploader, drafts), uploader, drafts


def test_publish_draft_runs_every_step(article_files: tuple[Path, Path]) -> None:
    markdown_path, cover = article_files
    publisher, uploader, drafts = _publisher()

    media_id = publisher.publish_draft(
        PublishParams(markdown_path=markdown_path, title="标题", cover_path=cover, author="作者")
    )

    assert media_id == "DRAFT_ID"
    assert uploader.images == [markdown_path.parent / "img1.png"]
    assert uploader.covers == [cover]
    article = drafts.payloads[0]["articles"][0]
    assert article["title"] == "标题"
    assert article["author"] == "作者"
    assert article["thumb_media_id"] == "THUMB_ID"
    assert article["need_open_comment"] == 0
    assert article["only_fans_can_comment"] == 0
    assert article["digest"] == default_digest(markdown_path.read_text(encoding="utf-8"))
    content = article["content"]
    assert 'src="https://mmbiz.qpic.cn/img1.png"' in content
    assert "<h1>" not in content and "<ol>" not in content
    assert "<p>1. 血糖</p><p>2. 激素</p>" in content


def test_caller_digest_wins(article_files: tuple[Path, Path]) -> None:
    markdown_path, cover = article_files
    publisher, _, drafts = _publisher()

    publisher.publish_draft(
        PublishParams(
            markdown_path=markdown_path, title="标题", cover_path=cover, digest="自定义摘要"
        )
    )

    assert drafts.payloads[0]["articles"][0]["digest"] == "自定义摘要"


def test_digest_limit_is_configurable(article_files: tuple[Path, Path]) -> None:
    markdown_path, cover = article_files
    drafts = StubDraftClient()
    publisher = WeChatContentPublisher(StubCredentials(), StubUploader(), drafts, digest_limit=5)

    publisher.publish_draft(PublishParams(markdown_path=markdown_path, title="t", cover_path=cover))

    assert drafts.payloads[0]["articles"][0]["digest"] == "# 为什么"


@pytest.mark.parametrize(
    "params",
    [
        PublishParams(markdown_path=Path("a.md"), title="", cover_path=Path("c.jpg")),
        PublishParams(markdown_path=Path(""), title="t", cover_path=Path("c.jpg")),
        PublishParams(markdown_path=Path("a.md"), title="t", cover_path=Path("")),
    ],
)
def test_missing_fields_fail_before_any_upload(params: PublishParams) -> None:
    publisher, uploader, drafts = _publisher()

    with pytest.raises(ValidationError):
        publisher.publish_draft(params)

    assert uploader.images == [] and uploader.covers == [] and drafts.payloads == []


def test_unreadable_markdown_is_read_step_failure(tmp_path: Path) -> None:
    publisher, uploader, _ = _publisher()

    with pytest.raises(PublishError) as excinfo:
        publisher.publish_draft(
            PublishParams(
                markdown_path=tmp_path / "gone.md", title="t", cover_path=tmp_path / "c.jpg"
            )
        )

    assert excinfo.value.step == "read_markdown"
    assert isinstance(excinfo.value.__cause__, FileNotFoundError)
    assert uploader.covers == []


def test_cover_failure_aborts_before_draft(article_files: tuple[Path, Path]) -> None:
    markdown_path, cover = article_files
    rejected = WeChatApiError("上传封面图片被微信拒绝", details={"errcode": 40004})
    uploader = StubUploader(cover_error=rejected)
    publisher, _, drafts = _publisher(uploader=uploader)

    with pytest.raises(PublishError) as excinfo:
        publisher.publish_draft(PublishParams(markdown_path=markdown_path, title="t", cover_path=cover))

    assert excinfo.value.step == "upload_cover"
    assert "40004" in str(excinfo.value)
    assert uploader.images == [markdown_path.parent / "img1.png"]
    assert drafts.payloads == []


def test_inline_image_failure_names_step(tmp_path: Path) -> None:
    class BrokenUploader(StubUploader):
        def upload_content_image(self, image: Path, *, context=None) -> str:
            raise OSError(f"cannot open {image}")

    markdown_path = tmp_path / "a.md"
    markdown_path.write_text("![x](missing.png)", encoding="utf-8")
    uploader = BrokenUploader()
    publisher, _, _ = _publisher(uploader=uploader)

    with pytest.raises(PublishError) as excinfo:
        publisher.publish_draft(
            PublishParams(markdown_path=markdown_path, title="t", cover_path=tmp_path / "c.jpg")
        )

    assert excinfo.value.step == "inline_images"
    assert uploader.covers == []


def test_cancelled_context_stops_publishing(article_files: tuple[Path, Path]) -> None:
    markdown_path, cover = article_files
    publisher, uploader, drafts = _publisher()
    context = CallContext()
    context.cancel()

    with pytest.raises(CallCancelledError):
        publisher.publish_draft(
            PublishParams(markdown_path=markdown_path, title="t", cover_path=cover), context=context
        )

    assert uploader.covers == [] and drafts.payloads == []


def test_prepare_wraps_token_failure() -> None:
    failure = WeChatApiError("获取 access_token 失败", details={"errcode": 40125})
    credentials = StubCredentials(error=failure)
    publisher = WeChatContentPublisher(credentials, StubUploader(), StubDraftClient())

    with pytest.raises(AuthenticationError) as excinfo:
        publisher.prepare()

    assert excinfo.value.step == "access_token"
    assert isinstance(excinfo.value, PublishError)


class TokenOnlyHttp:
    def __init__(self, payload: dict[str, object]) -> None:
        self.payload = payload
        self.calls = 0

    def get(self, url: str, **kwargs):
        self.calls += 1
        return SimpleNamespace(
            json=lambda: self.payload, raise_for_status=lambda: None, text=str(self.payload)
        )


def test_create_fetches_token_up_front() -> None:
    http = TokenOnlyHttp({"access_token": "TOKEN", "expires_in": 7200})
    secrets = MappingSecretProvider({"wechat.app_id": "wx", "wechat.app_secret": "s"})

    publisher = WeChatContentPublisher.create(WeChatSettings(), secrets=secrets, http=http)

    assert isinstance(publisher, WeChatContentPublisher)
    assert http.calls == 1


def test_create_with_bad_credentials_is_authentication_error() -> None:
    http = TokenOnlyHttp({"errcode": 40001, "errmsg": "invalid credential"})
    secrets = MappingSecretProvider({"wechat.app_id": "wx", "wechat.app_secret": "bad"})

    with pytest.raises(AuthenticationError):
        WeChatContentPublisher.create(WeChatSettings(), secrets=secrets, http=http)


def test_create_without_credentials_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        WeChatContentPublisher.create(WeChatSettings(), env={}, http=TokenOnlyHttp({}))


def test_create_prefers_environment_over_config() -> None:
    http = TokenOnlyHttp({"access_token": "TOKEN", "expires_in": 7200})
    settings = WeChatSettings(app_id="from-config", app_secret="config-secret")

    publisher = WeChatContentPublisher.create(
        settings, env={"WECHAT_APP_ID": "from-env", "WECHAT_APP_SECRET": "env-secret"}, http=http
    )

    assert publisher._credentials.app_id == "from-env"

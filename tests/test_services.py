from __future__ import annotations

import os
import time
from pathlib import Path

import pytest

from autodraft.ai import GenerationAgent, Prompt, Spec
from autodraft.app.session_store import SessionStore
from autodraft.core import GenerationError, SessionNotFoundError, ValidationError
from autodraft.platforms import ContentPublisher, PublishParams
from autodraft.services import DraftingService, PublishingService


class ScriptedLLM:
    def __init__(self, *outputs: str | Exception) -> None:
        self._outputs = list(outputs)

    def complete(self, prompt: Prompt, *, context=None) -> str:
        output = self._outputs.pop(0)
        if isinstance(output, Exception):
            raise output
        return output


class RecordingPublisher(ContentPublisher):
    def __init__(self) -> None:
        self.params: list[PublishParams] = []
        self.markdown_seen: list[str] = []

    def prepare(self, *, context=None) -> None:
        pass

    def publish_draft(self, params: PublishParams, *, context=None) -> str:
        self.params.append(params)
        self.markdown_seen.append(Path(params.markdown_path).read_text(encoding="utf-8"))
        return f"MEDIA_{len(self.params)}"


class CountingFactory:
    def __init__(self, publisher: ContentPublisher) -> None:
        self.publisher = publisher
        self.calls = 0

    def __call__(self) -> ContentPublisher:
        self.calls += 1
        return self.publisher


def _drafting(*outputs: str | Exception) -> DraftingService:
    return DraftingService(SessionStore(), GenerationAgent(ScriptedLLM(*outputs)))


@pytest.fixture
def cover(tmp_path: Path) -> Path:
    path = tmp_path / "cover.jpg"
    path.write_bytes(b"jpg")
    return path


def test_create_session_registers_after_first_draft() -> None:
    drafting = _drafting("# 初稿\n\n正文")

    session = drafting.create_session(Spec(topic="主题"))

    assert len(session.id) == 32
    assert drafting.get(session.id) is session
    assert session.draft is not None and session.draft.title == "初稿"


def test_failed_first_draft_registers_nothing() -> None:
    drafting = _drafting(GenerationError("boom"))

    with pytest.raises(GenerationError):
        drafting.create_session(Spec(topic="主题"))

    assert len(drafting.store) == 0


def test_create_session_requires_topic() -> None:
    with pytest.raises(ValidationError):
        _drafting().create_session(Spec(topic="  "))


def test_revise_by_id() -> None:
    drafting = _drafting("# 初稿\n\n正文", "# 修订\n\n正文")
    session = drafting.create_session(Spec(topic="主题"))

    revised = drafting.revise(session.id, "改短")

    assert revised is session
    assert session.draft.title == "修订"
    assert len(session.history) == 2


def test_unknown_session_operations() -> None:
    drafting = _drafting()

    with pytest.raises(SessionNotFoundError):
        drafting.revise("missing", "x")
    with pytest.raises(ValidationError):
        drafting.get("")
    with pytest.raises(SessionNotFoundError):
        drafting.register_upload("missing", "/tmp/x.png")
    assert not drafting.heartbeat("missing")
    assert not drafting.delete("missing")


def test_registered_uploads_go_with_the_session(tmp_path: Path) -> None:
    drafting = _drafting("# 初稿\n\n正文")
    session = drafting.create_session(Spec(topic="主题"))
    upload = tmp_path / "upload.png"
    upload.write_bytes(b"png")

    drafting.register_upload(session.id, upload)
    assert drafting.delete(session.id)

    assert not upload.exists()


def test_publish_session_uses_draft_fallbacks(tmp_path: Path, cover: Path) -> None:
    drafting = _drafting("# 草稿标题\n\n正文内容")
    session = drafting.create_session(Spec(topic="主题"))
    publisher = RecordingPublisher()
    service = PublishingService(drafting.store, CountingFactory(publisher), temp_dir=tmp_path)

    outcome = service.publish_session(session.id, cover_path=cover, author=" 作者 ")

    assert outcome.media_id == "MEDIA_1"
    assert outcome.title == "草稿标题"
    assert outcome.cover_path == cover
    params = publisher.params[0]
    assert params.title == "草稿标题"
    assert params.author == "作者"
    assert params.digest == ""
    assert publisher.markdown_seen == ["# 草稿标题\n\n正文内容"]
    assert Path(params.markdown_path).name.startswith("draft-")
    assert not Path(params.markdown_path).exists()


def test_publish_session_title_falls_back_to_topic(tmp_path: Path, cover: Path) -> None:
    drafting = _drafting("没有标题的正文")
    session = drafting.create_session(Spec(topic="睡眠与甜食"))
    service = PublishingService(drafting.store, CountingFactory(RecordingPublisher()), temp_dir=tmp_path)

    outcome = service.publish_session(session.id, cover_path=cover)

    assert outcome.title == "睡眠与甜食"


def test_explicit_title_and_digest_override(tmp_path: Path, cover: Path) -> None:
    drafting = _drafting("# 草稿标题\n\n正文")
    session = drafting.create_session(Spec(topic="主题"))
    publisher = RecordingPublisher()
    service = PublishingService(drafting.store, CountingFactory(publisher), temp_dir=tmp_path)

    service.publish_session(session.id, cover_path=cover, title="新标题", digest="摘要")

    assert publisher.params[0].title == "新标题"
    assert publisher.params[0].digest == "摘要"


def test_default_cover_is_used(tmp_path: Path, cover: Path) -> None:
    drafting = _drafting("# T\n\n正文")
    session = drafting.create_session(Spec(topic="主题"))
    publisher = RecordingPublisher()
    service = PublishingService(
        drafting.store, CountingFactory(publisher), default_cover=cover, temp_dir=tmp_path
    )

    service.publish_session(session.id)

    assert publisher.params[0].cover_path == cover


def test_publish_validation_happens_before_publisher_is_built(tmp_path: Path, cover: Path) -> None:
    drafting = _drafting("# T\n\n正文")
    session = drafting.create_session(Spec(topic="主题"))
    factory = CountingFactory(RecordingPublisher())
    service = PublishingService(drafting.store, factory, temp_dir=tmp_path)

    with pytest.raises(ValidationError):
        service.publish_session("")
    with pytest.raises(SessionNotFoundError):
        service.publish_session("missing", cover_path=cover)
    with pytest.raises(ValidationError):
        service.publish_session(session.id)
    with pytest.raises(ValidationError, match="cover not found"):
        service.publish_session(session.id, cover_path=tmp_path / "absent.jpg")

    assert factory.calls == 0


def test_publisher_is_built_once(tmp_path: Path, cover: Path) -> None:
    drafting = _drafting("# T\n\n正文")
    session = drafting.create_session(Spec(topic="主题"))
    factory = CountingFactory(RecordingPublisher())
    service = PublishingService(drafting.store, factory, temp_dir=tmp_path)

    first = service.publish_session(session.id, cover_path=cover)
    second = service.publish_session(session.id, cover_path=cover)

    assert (first.media_id, second.media_id) == ("MEDIA_1", "MEDIA_2")
    assert factory.calls == 1


def test_temp_draft_is_removed_when_publish_fails(tmp_path: Path, cover: Path) -> None:
    class FailingPublisher(RecordingPublisher):
        def publish_draft(self, params: PublishParams, *, context=None) -> str:
            super().publish_draft(params, context=context)
            raise OSError("network down")

    drafting = _drafting("# T\n\n正文")
    session = drafting.create_session(Spec(topic="主题"))
    publisher = FailingPublisher()
    service = PublishingService(drafting.store, CountingFactory(publisher), temp_dir=tmp_path)

    with pytest.raises(OSError):
        service.publish_session(session.id, cover_path=cover)

    assert not Path(publisher.params[0].markdown_path).exists()


def test_cleanup_stale_drafts_only_removes_old_files(tmp_path: Path) -> None:
    old = tmp_path / "draft-old.md"
    old.write_text("old", encoding="utf-8")
    stale_time = time.time() - 48 * 3600
    os.utime(old, (stale_time, stale_time))
    fresh = tmp_path / "draft-new.md"
    fresh.write_text("new", encoding="utf-8")
    unrelated = tmp_path / "notes.md"
    unrelated.write_text("keep", encoding="utf-8")
    os.utime(unrelated, (stale_time, stale_time))
    service = PublishingService(SessionStore(), CountingFactory(RecordingPublisher()), temp_dir=tmp_path)

    removed = service.cleanup_stale_drafts(24 * 3600)

    assert removed == 1
    assert not old.exists()
    assert fresh.exists() and unrelated.exists()

from __future__ import annotations

import re

import pytest

from autodraft.ai import (
    DEFAULT_STYLE,
    STYLE_PRESETS,
    Draft,
    GenerationAgent,
    Prompt,
    Spec,
    build_initial_prompt,
    build_revision_prompt,
    extract_title,
    post_process,
)
from autodraft.ai.models import INITIAL_COMMENT, INITIAL_SUMMARY, REVISION_SUMMARY, Turn
from autodraft.core import ConfigurationError, EmptyModelOutputError, GenerationError


class ScriptedLLM:
    """Returns queued outputs in order and records every prompt it receives."""

    def __init__(self, *outputs: str | Exception) -> None:
        self._outputs = list(outputs)
        self.prompts: list[Prompt] = []

    def complete(self, prompt: Prompt, *, context=None) -> str:
        self.prompts.append(prompt)
        output = self._outputs.pop(0)
        if isinstance(output, Exception):
            raise output
        return output


def test_extract_title_uses_first_top_level_heading() -> None:
    assert extract_title("前言\n# 主标题\n## 小节\n# 第二个") == "主标题"
    assert extract_title("## 只有二级标题") == ""
    assert extract_title("#没有空格") == ""


def test_extract_title_accepts_full_width_space() -> None:
    assert extract_title("#　自动化实践\n正文") == "自动化实践"
    assert extract_title("#\n正文") == ""


def test_post_process_trims_and_leaves_digest_empty() -> None:
    draft = post_process("\n\n# 标题\n\n正文\n\n", Spec(topic="t"))

    assert draft.title == "标题"
    assert draft.digest == ""
    assert draft.markdown == "# 标题\n\n正文"


def test_post_process_rejects_whitespace_output() -> None:
    with pytest.raises(EmptyModelOutputError):
        post_process("  \n\t ", Spec(topic="t"))


def test_spec_from_mapping_normalizes_fields() -> None:
    spec = Spec.from_mapping(
        {"topic": " 睡眠 ", "outline": ["a", " ", "b"], "words": "800", "constraints": "少用术语"}
    )

    assert spec.topic == "睡眠"
    assert spec.outline == ("a", "b")
    assert spec.words == 800
    assert spec.constraints == ("少用术语",)
    assert spec.style == ""


def test_spec_from_mapping_rejects_non_numeric_words() -> None:
    with pytest.raises(ValueError):
        Spec.from_mapping({"topic": "t", "words": "many"})


def test_initial_prompt_includes_requested_sections() -> None:
    spec = Spec(
        topic="为什么熬夜后更想吃甜食",
        outline=("血糖波动", "睡眠剥夺研究"),
        words=800,
        constraints=("不要列参考文献",),
    )

    prompt = build_initial_prompt(spec)

    assert "目标字数约 800 字（允许 ±15%）" in prompt.system
    assert STYLE_PRESETS[DEFAULT_STYLE].strip() in prompt.system
    assert "额外约束：\n- 不要列参考文献" in prompt.system
    assert "  1. 血糖波动\n  2. 睡眠剥夺研究" in prompt.system
    assert "必须包含一级标题" in prompt.system
    assert prompt.user.startswith("主题：为什么熬夜后更想吃甜食")
    assert prompt.history == ()


def test_initial_prompt_omits_word_target_and_unknown_style() -> None:
    prompt = build_initial_prompt(Spec(topic="t", style="no-such-style"))

    assert "目标字数" not in prompt.system
    assert "风格预设" not in prompt.system
    assert "额外约束" not in prompt.system


def test_initial_prompt_uses_named_preset() -> None:
    prompt = build_initial_prompt(Spec(topic="t", style="novelistic"))

    assert STYLE_PRESETS["novelistic"].strip() in prompt.system
    assert STYLE_PRESETS["life-rational"].strip() not in prompt.system


def test_revision_prompt_carries_previous_draft_and_earlier_comments() -> None:
    first = Draft(title="T", digest="", markdown="# T\n\n第一版")
    second = Draft(title="T", digest="", markdown="# T\n\n第二版")
    history = (
        Turn(comment=INITIAL_COMMENT, draft=first, summary=INITIAL_SUMMARY),
        Turn(comment="开头更短", draft=second, summary=REVISION_SUMMARY),
    )

    prompt = build_revision_prompt(Spec(topic="t"), second, "加一个例子", history)

    assert "当前稿件：\n# T\n\n第二版" in prompt.user
    assert "用户反馈：加一个例子" in prompt.user
    assert "最小必要改动" in prompt.system
    assert [m.content for m in prompt.history] == [INITIAL_COMMENT, "开头更短"]
    assert all(m.role == "user" for m in prompt.history)


def test_revision_prompt_skips_turns_without_comment() -> None:
    draft = Draft(title="T", digest="", markdown="# T")
    history = (
        Turn(comment=INITIAL_COMMENT, draft=draft, summary=INITIAL_SUMMARY),
        Turn(comment="", draft=draft, summary=REVISION_SUMMARY),
    )

    prompt = build_revision_prompt(Spec(topic="t"), draft, "改", history)

    assert [m.content for m in prompt.history] == [INITIAL_COMMENT]


def test_agent_requires_llm() -> None:
    with pytest.raises(ConfigurationError):
        GenerationAgent(None)


def test_agent_switches_between_initial_and_revision_prompts() -> None:
    llm = ScriptedLLM("# 初稿\n\n内容", "# 修订稿\n\n内容")
    agent = GenerationAgent(llm)
    spec = Spec(topic="主题")

    first = agent.generate(spec, None, ())
    second = agent.generate(spec, first, (), "再短一点")

    assert first.title == "初稿"
    assert second.title == "修订稿"
    assert "主题：主题" in llm.prompts[0].user
    assert "用户反馈：再短一点" in llm.prompts[1].user


def _heading_count(markdown: str) -> int:
    return len(re.findall(r"^#{1,6}\s+\S", markdown, re.MULTILINE))


def test_revision_keeps_heading_structure() -> None:
    original = "# 自动化实践\n\n## 背景\n\n正文\n\n## 结尾\n\n收尾。"
    revised = "# 自动化实践\n\n## 背景\n\n正文\n\n## 结尾\n\n收尾更有力，留下一个问题。\n"
    llm = ScriptedLLM(revised)
    agent = GenerationAgent(llm)
    previous = post_process(original, Spec(topic="自动化"))

    draft = agent.generate(Spec(topic="自动化"), previous, (), "加强结尾")

    assert _heading_count(previous.markdown) == 3
    assert _heading_count(draft.markdown) == 3
    assert draft.title == "自动化实践"
    assert "用户反馈：加强结尾" in llm.prompts[0].user


def test_agent_propagates_model_failure() -> None:
    agent = GenerationAgent(ScriptedLLM(GenerationError("upstream down")))

    with pytest.raises(GenerationError, match="upstream down"):
        agent.generate(Spec(topic="t"), None, ())

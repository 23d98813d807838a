"""Prompt assembly for first drafts and comment-driven revisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from ..utils.logging import get_logger
from .models import Draft, Spec, Turn

LOGGER = get_logger(__name__)

DEFAULT_STYLE = "life-rational"

STYLE_PRESETS: dict[str, str] = {
    "life-rational": """你是一名内容写作者，面向没有专业背景的普通读者。

写作要求：
- 风格：生活化、理性、克制
- 语气：冷静、解释型，不煽动情绪
- 不使用营销号语言（如“震惊”“你一定不知道”）
- 不居高临下，不对读者进行道德评判
- 用日常生活场景引出问题
- 用简单的科学模型或研究结论进行解释
- 避免过多专业术语，如必须出现请顺带解释

文章结构建议：
1. 一个真实生活场景或普遍困惑
2. 人们常见的直觉理解
3. 科学上的解释或研究发现
4. 一个温和、开放的收束结论

目标：
让读者读完后觉得“原来是这样”，而不是“我被教育了”。""",
    "warm-healing": """你是一名温和的内容写作者，擅长用科学解释人的情绪和行为。

写作要求：
- 风格：温和、治愈、有同理心
- 语气：像一个理解人的朋友，而不是专家或老师
- 允许情绪表达，但不过度煽情
- 不指责、不批评、不下“你应该”的结论
- 科学内容作为解释工具，而不是说服工具

文章结构建议：
1. 描述一种常见的情绪或困扰
2. 明确告诉读者：这种状态并不罕见
3. 用心理学或行为科学解释为什么会这样
4. 给出一个宽松、非强制的理解视角

目标：
让读者读完后感觉“被理解”，而不是“被分析”。""",
    "novelistic": """你是一名内容写作者，使用“轻小说式叙事”来解释现象或原理。

写作方式：
- 以一个非常日常的生活场景开头
- 使用第三人称或模糊第一人称
- 场景真实、克制，不追求戏剧冲突
- 不写完整故事，只写一个生活切片
- 人物不需要名字和详细背景

解释要求：
- 小说只是引子，核心目的是解释原理
- 在中段自然引入心理学 / 认知科学解释
- 避免学术语言，用生活化比喻说明机制
- 不下结论式判断，不进行价值说教

文章目标：
让读者在“读故事”的过程中，理解一个科学概念。""",
}


@dataclass(frozen=True, slots=True)
class Message:
    role: str
    content: str


@dataclass(frozen=True, slots=True)
class Prompt:
    """System instruction, primary user message, and optional prior messages."""

    system: str
    user: str
    history: tuple[Message, ...] = field(default_factory=tuple)


def resolve_style(style: str) -> tuple[str, str]:
    """Return ``(key, preset_text)``; unknown keys yield empty text."""
    key = style.strip() or DEFAULT_STYLE
    text = STYLE_PRESETS.get(key, "").strip()
    if not text:
        LOGGER.debug("No style preset for key=%s; continuing without style text", key)
    return key, text


def _style_block(style_text: str) -> list[str]:
    if not style_text:
        return []
    return ["风格预设：", style_text]


def _constraint_block(constraints: Sequence[str]) -> list[str]:
    if not constraints:
        return []
    return ["额外约束：", *(f"- {item}" for item in constraints)]


def build_initial_prompt(spec: Spec) -> Prompt:
    style_key, style_text = resolve_style(spec.style)

    lines = ["你是一名专业中文内容创作者，请直接输出 Markdown，不要额外解释。", "要求："]
    if spec.words > 0:
        lines.append(f"- 目标字数约 {spec.words} 字（允许 ±15%）。")
    lines.extend(_style_block(style_text))
    lines.extend(_constraint_block(spec.constraints))
    lines.append("- 必须包含一级标题作为文章标题。")
    if spec.outline:
        lines.append("- 结合以下背景信息进行写作：")
        lines.extend(f"  {index}. {item}" for index, item in enumerate(spec.outline, start=1))
    lines.append("请严格遵守以上要求和 Markdown 结构，禁止额外说明。")

    system = "\n".join(lines) + "\n"
    user = f"主题：{spec.topic}\n请输出符合上述要求的完整 Markdown。"
    LOGGER.debug(
        "Built initial prompt style=%s constraints=%d outline=%d\nsystem:\n%s\nuser:\n%s",
        style_key,
        len(spec.constraints),
        len(spec.outline),
        system,
        user,
    )
    return Prompt(system=system, user=user)


def build_revision_prompt(
    spec: Spec,
    previous: Draft,
    comment: str,
    history: Sequence[Turn],
) -> Prompt:
    style_key, style_text = resolve_style(spec.style)

    lines = [
        "你是一名专业编辑，基于用户反馈对稿件做最小必要改动，保持 Markdown 结构。",
        "- 维持标题层级和列表格式。",
        "- 如果反馈无效或不合理，说明原因并保持原文。",
    ]
    lines.extend(_style_block(style_text))
    lines.extend(_constraint_block(spec.constraints))
    system = "\n".join(lines) + "\n"

    user = f"当前稿件：\n{previous.markdown}\n\n用户反馈：{comment}\n请输出修订后的完整 Markdown。"

    earlier = tuple(
        Message(role="user", content=turn.comment)
        for turn in history
        if turn.comment
    )
    LOGGER.debug(
        "Built revision prompt style=%s history=%d comment_chars=%d",
        style_key,
        len(earlier),
        len(comment),
    )
    return Prompt(system=system, user=user, history=earlier)


__all__ = [
    "DEFAULT_STYLE",
    "STYLE_PRESETS",
    "Message",
    "Prompt",
    "build_initial_prompt",
    "build_revision_prompt",
    "resolve_style",
]

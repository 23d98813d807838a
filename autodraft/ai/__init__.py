"""Draft generation: prompts, model clients, post-processing, and the agent."""

from .agent import GenerationAgent
from .llm import GeminiLLM, LLMClient, MockLLM, OpenAIChatLLM, create_llm, supported_providers
from .models import INITIAL_COMMENT, Draft, Spec, Turn
from .postprocess import extract_title, post_process
from .prompt import (
    DEFAULT_STYLE,
    STYLE_PRESETS,
    Message,
    Prompt,
    build_initial_prompt,
    build_revision_prompt,
)

__all__ = [
    "DEFAULT_STYLE",
    "INITIAL_COMMENT",
    "STYLE_PRESETS",
    "Draft",
    "GeminiLLM",
    "GenerationAgent",
    "LLMClient",
    "Message",
    "MockLLM",
    "OpenAIChatLLM",
    "Prompt",
    "Spec",
    "Turn",
    "build_initial_prompt",
    "build_revision_prompt",
    "create_llm",
    "extract_title",
    "post_process",
    "supported_providers",
]

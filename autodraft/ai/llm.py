"""Language-model clients behind a single ``complete(prompt)`` capability."""

from __future__ import annotations

import time
from typing import Callable, Mapping, Protocol

from google import genai
from google.genai import types
from openai import OpenAI, OpenAIError

from ..core.context import CallContext, ensure_context
from ..core.errors import ConfigurationError, GenerationError
from ..security import EnvSecretProvider, SecretNotFoundError
from ..settings import LLMSettings
from ..utils.logging import get_logger
from .prompt import Prompt

LOGGER = get_logger(__name__)


class LLMClient(Protocol):
    """Given a prompt, return generated text or raise ``GenerationError``."""

    def complete(self, prompt: Prompt, *, context: CallContext | None = None) -> str:
        ...


class GeminiLLM:
    """google-genai backed client; history roles map to ``user``/``model``."""

    def __init__(
        self,
        client: genai.Client,
        *,
        model: str,
        timeout: float = 60.0,
        temperature: float | None = None,
        thinking_budget: int | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._timeout = timeout
        self._temperature = temperature
        self._thinking_budget = thinking_budget

    @property
    def model(self) -> str:
        return self._model

    def _contents(self, prompt: Prompt) -> list[types.Content]:
        contents = [
            types.Content(
                role="model" if message.role == "assistant" else "user",
                parts=[types.Part(text=message.content)],
            )
            for message in prompt.history
        ]
        contents.append(types.Content(role="user", parts=[types.Part(text=prompt.user)]))
        return contents

    def _config(self, prompt: Prompt, timeout: float) -> types.GenerateContentConfig:
        config_kwargs: dict[str, object] = {
            "system_instruction": prompt.system,
            "http_options": types.HttpOptions(timeout=max(1, int(timeout * 1000))),
        }
        if self._temperature is not None:
            config_kwargs["temperature"] = self._temperature
        if self._thinking_budget and self._thinking_budget > 0:
            config_kwargs["thinking_config"] = types.ThinkingConfig(
                thinking_budget=self._thinking_budget
            )
            LOGGER.debug("Thinking mode enabled budget=%s", self._thinking_budget)
        return types.GenerateContentConfig(**config_kwargs)

    def complete(self, prompt: Prompt, *, context: CallContext | None = None) -> str:
        ctx = ensure_context(context)
        ctx.check("gemini completion")
        timeout = ctx.timeout_for(self._timeout)

        start = time.monotonic()
        LOGGER.info(
            "Gemini request start model=%s history=%d timeout=%.1fs",
            self._model,
            len(prompt.history),
            timeout,
        )
        try:
            response = self._client.models.generate_content(
                model=self._model,
                contents=self._contents(prompt),
                config=self._config(prompt, timeout),
            )
        except Exception as exc:
            raise GenerationError(f"Gemini API call failed: {exc}") from exc
        LOGGER.info("Gemini request succeeded in %.2fs", time.monotonic() - start)
        return response.text or ""


class OpenAIChatLLM:
    """Chat-completions client for the OpenAI API or any wire-compatible gateway."""

    def __init__(
        self,
        client: OpenAI,
        *,
        model: str,
        timeout: float = 60.0,
        temperature: float | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._timeout = timeout
        self._temperature = temperature

    @property
    def model(self) -> str:
        return self._model

    @staticmethod
    def build_messages(prompt: Prompt) -> list[dict[str, str]]:
        messages = [{"role": "system", "content": prompt.system}]
        for message in prompt.history:
            role = "assistant" if message.role == "assistant" else "user"
            messages.append({"role": role, "content": message.content})
        messages.append({"role": "user", "content": prompt.user})
        return messages

    def complete(self, prompt: Prompt, *, context: CallContext | None = None) -> str:
        ctx = ensure_context(context)
        ctx.check("openai completion")

        request_kwargs: dict[str, object] = {
            "model": self._model,
            "messages": self.build_messages(prompt),
            "timeout": ctx.timeout_for(self._timeout),
        }
        if self._temperature is not None:
            request_kwargs["temperature"] = self._temperature

        start = time.monotonic()
        LOGGER.info(
            "OpenAI request start model=%s messages=%d",
            self._model,
            len(request_kwargs["messages"]),
        )
        try:
            response = self._client.chat.completions.create(**request_kwargs)
        except OpenAIError as exc:
            raise GenerationError(f"OpenAI API call failed: {exc}") from exc
        if not response.choices:
            raise GenerationError("openai: empty choices")
        LOGGER.info("OpenAI request succeeded in %.2fs", time.monotonic() - start)
        return response.choices[0].message.content or ""


class MockLLM:
    """Offline stand-in that echoes the prompt inside a fixed Markdown skeleton."""

    def complete(self, prompt: Prompt, *, context: CallContext | None = None) -> str:
        ensure_context(context).check("mock completion")
        return (
            "# 自动生成示例标题\n\n"
            "这里是一段自动生成的摘要，概述全文要点。\n\n"
            "## 正文\n\n"
            "根据提示生成的内容：\n\n"
            f"```\n{prompt.user}\n```\n"
        )


_DEFAULT_KEY_ENV = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "openai-compatible": "OPENAI_API_KEY",
}


def _resolve_api_key(settings: LLMSettings, provider: str, env: Mapping[str, str] | None) -> str:
    if settings.api_key:
        return settings.api_key
    name = settings.api_key_env or _DEFAULT_KEY_ENV[provider]
    try:
        return EnvSecretProvider(env=env).get_secret(name)
    except SecretNotFoundError as exc:
        raise ConfigurationError(f"{provider} api key missing; set {name}") from exc


def _require_model(settings: LLMSettings) -> str:
    if not settings.model:
        raise ConfigurationError("llm model is required")
    return settings.model


def _build_gemini(settings: LLMSettings, env: Mapping[str, str] | None) -> LLMClient:
    model = _require_model(settings)
    client_kwargs: dict[str, object] = {"api_key": _resolve_api_key(settings, "gemini", env)}
    if settings.base_url:
        client_kwargs["http_options"] = types.HttpOptions(base_url=settings.base_url)
    return GeminiLLM(
        genai.Client(**client_kwargs),
        model=model,
        timeout=settings.timeout,
        temperature=settings.temperature,
        thinking_budget=settings.thinking_budget,
    )


def _build_openai(settings: LLMSettings, env: Mapping[str, str] | None) -> LLMClient:
    model = _require_model(settings)
    client_kwargs: dict[str, object] = {
        "api_key": _resolve_api_key(settings, "openai", env),
        "max_retries": 0,
    }
    if settings.base_url:
        client_kwargs["base_url"] = settings.base_url
    return OpenAIChatLLM(
        OpenAI(**client_kwargs),
        model=model,
        timeout=settings.timeout,
        temperature=settings.temperature,
    )


def _build_openai_compatible(settings: LLMSettings, env: Mapping[str, str] | None) -> LLMClient:
    if not settings.base_url:
        raise ConfigurationError("openai-compatible provider requires llm.base_url")
    model = _require_model(settings)
    client = OpenAI(
        api_key=_resolve_api_key(settings, "openai-compatible", env),
        base_url=settings.base_url,
        max_retries=0,
    )
    return OpenAIChatLLM(
        client,
        model=model,
        timeout=settings.timeout,
        temperature=settings.temperature,
    )


_BUILDERS: dict[str, Callable[[LLMSettings, Mapping[str, str] | None], LLMClient]] = {
    "gemini": _build_gemini,
    "openai": _build_openai,
    "openai-compatible": _build_openai_compatible,
    "mock": lambda settings, env: MockLLM(),
}


def supported_providers() -> list[str]:
    return sorted(_BUILDERS)


def create_llm(settings: LLMSettings, *, env: Mapping[str, str] | None = None) -> LLMClient:
    """Build the configured provider; configuration problems are fatal."""
    if not settings.provider:
        raise ConfigurationError("llm config missing; please set llm.provider and llm.model")
    try:
        builder = _BUILDERS[settings.provider.lower()]
    except KeyError as exc:
        raise ConfigurationError(f"llm provider {settings.provider} not supported") from exc
    client = builder(settings, env)
    LOGGER.info("Initialized LLM provider=%s model=%s", settings.provider, settings.model)
    return client


__all__ = [
    "GeminiLLM",
    "LLMClient",
    "MockLLM",
    "OpenAIChatLLM",
    "create_llm",
    "supported_providers",
]

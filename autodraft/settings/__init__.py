"""Settings package exports."""

from .loader import (
    CONFIG_ENV_VAR,
    AppConfig,
    AppSettings,
    LLMSettings,
    PublishSettings,
    SessionSettings,
    WeChatSettings,
    load_config,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "AppConfig",
    "AppSettings",
    "LLMSettings",
    "PublishSettings",
    "SessionSettings",
    "WeChatSettings",
    "load_config",
]

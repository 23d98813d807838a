"""Helpers for loading configuration from TOML."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_NAME = "config.toml"
CONFIG_ENV_VAR = "AUTODRAFT_CONFIG"


@dataclass(slots=True)
class AppSettings:
    log_level: str = "INFO"
    structured_logs: bool = True


@dataclass(slots=True)
class WeChatSettings:
    app_id: str | None = None
    app_secret: str | None = None
    timeout: float = 60.0

    def as_secrets(self) -> dict[str, str]:
        """Configured credentials keyed the way the secret provider chain looks them up."""
        secrets: dict[str, str] = {}
        if self.app_id:
            secrets["wechat.app_id"] = self.app_id
        if self.app_secret:
            secrets["wechat.app_secret"] = self.app_secret
        return secrets


@dataclass(slots=True)
class LLMSettings:
    provider: str | None = None
    model: str | None = None
    api_key_env: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    timeout: float = 60.0
    temperature: float | None = None
    thinking_budget: int | None = None


@dataclass(slots=True)
class SessionSettings:
    ttl_seconds: float = 300.0
    sweep_interval_seconds: float = 60.0


@dataclass(slots=True)
class PublishSettings:
    digest_limit: int = 120
    default_cover: Path | None = None
    temp_draft_max_age_hours: float = 24.0


@dataclass(slots=True)
class AppConfig:
    app: AppSettings
    wechat: WeChatSettings
    llm: LLMSettings
    session: SessionSettings
    publish: PublishSettings
    source: Path | None = None


def _to_path(value: str | None, *, fallback: Path | None) -> Path | None:
    if not value:
        return fallback
    candidate = Path(value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _config_path(explicit: str | os.PathLike[str] | None = None) -> Path:
    candidate: Path
    if explicit:
        candidate = Path(explicit)
    else:
        env_value = os.environ.get(CONFIG_ENV_VAR)
        candidate = Path(env_value) if env_value else PROJECT_ROOT / DEFAULT_CONFIG_NAME
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _load_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("rb") as fp:
        return tomllib.load(fp)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_int(value: Any) -> int | None:
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str) and value.strip():
        return int(float(value))
    return None


def _optional_float(value: Any) -> float | None:
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        return float(value)
    return None


def _build_llm(section: dict[str, Any]) -> LLMSettings:
    provider = _optional_str(section.get("provider"))
    return LLMSettings(
        provider=provider.lower() if provider else None,
        model=_optional_str(section.get("model")),
        api_key_env=_optional_str(section.get("api_key_env")),
        api_key=_optional_str(section.get("api_key")),
        base_url=_optional_str(section.get("base_url")),
        timeout=float(section.get("timeout", 60)),
        temperature=_optional_float(section.get("temperature")),
        thinking_budget=_optional_int(section.get("thinking_budget")),
    )


def load_config(
    config_path: str | os.PathLike[str] | None = None,
    *,
    allow_missing: bool = False,
) -> AppConfig:
    path = _config_path(config_path)
    if allow_missing and not path.exists():
        data: dict[str, Any] = {}
        source = None
    else:
        data = _load_toml(path)
        source = path

    app_section = data.get("app", {})
    wechat_section = data.get("wechat", {})
    session_section = data.get("session", {})
    publish_section = data.get("publish", {})

    app = AppSettings(
        log_level=str(app_section.get("log_level", "INFO")).upper(),
        structured_logs=bool(app_section.get("structured_logs", True)),
    )
    wechat = WeChatSettings(
        app_id=_optional_str(wechat_section.get("app_id")),
        app_secret=_optional_str(wechat_section.get("app_secret")),
        timeout=float(wechat_section.get("timeout", 60)),
    )
    session = SessionSettings(
        ttl_seconds=float(session_section.get("ttl_seconds", 300)),
        sweep_interval_seconds=float(session_section.get("sweep_interval_seconds", 60)),
    )
    publish = PublishSettings(
        digest_limit=int(publish_section.get("digest_limit", 120)),
        default_cover=_to_path(publish_section.get("default_cover"), fallback=None),
        temp_draft_max_age_hours=float(publish_section.get("temp_draft_max_age_hours", 24)),
    )

    if session.ttl_seconds <= 0:
        raise ValueError("session.ttl_seconds must be positive")
    if session.sweep_interval_seconds <= 0:
        raise ValueError("session.sweep_interval_seconds must be positive")

    return AppConfig(
        app=app,
        wechat=wechat,
        llm=_build_llm(data.get("llm", {})),
        session=session,
        publish=publish,
        source=source,
    )


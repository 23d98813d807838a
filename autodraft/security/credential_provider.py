"""Secret resolution for WeChat credentials and model API keys."""

from __future__ import annotations

from abc import ABC, abstractmethod
from os import environ
from typing import Iterable, Mapping


class SecretNotFoundError(KeyError):
    """Raised when a secret cannot be resolved."""


class SecretProvider(ABC):
    """Abstract secret lookup contract."""

    @abstractmethod
    def get_secret(self, key: str) -> str:
        """Return the secret associated with ``key``."""


class EnvSecretProvider(SecretProvider):
    """Reads secrets from environment variables; ``wechat.app_id`` -> ``WECHAT_APP_ID``."""

    def __init__(self, prefix: str = "", *, env: Mapping[str, str] | None = None) -> None:
        self._env = env if env is not None else environ
        self._prefix = prefix

    @staticmethod
    def variable_name(key: str, prefix: str = "") -> str:
        compound = f"{prefix}{key}" if prefix else key
        return compound.upper().replace(".", "_").replace("-", "_")

    def get_secret(self, key: str) -> str:
        name = self.variable_name(key, self._prefix)
        value = self._env.get(name, "").strip()
        if not value:
            raise SecretNotFoundError(name)
        return value


class MappingSecretProvider(SecretProvider):
    """Wraps a plain mapping, e.g. values read from the config file."""

    def __init__(self, mapping: Mapping[str, str]) -> None:
        self._mapping = mapping

    def get_secret(self, key: str) -> str:
        value = self._mapping.get(key)
        if not value:
            raise SecretNotFoundError(key)
        return value


class ChainedSecretProvider(SecretProvider):
    """Tries multiple providers until one returns a secret."""

    def __init__(self, providers: Iterable[SecretProvider]) -> None:
        self._providers = tuple(providers)

    def get_secret(self, key: str) -> str:
        for provider in self._providers:
            try:
                return provider.get_secret(key)
            except SecretNotFoundError:
                continue
        raise SecretNotFoundError(key)


def default_provider(
    config_secrets: Mapping[str, str] | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> SecretProvider:
    """Environment first, then values from the config file."""
    return ChainedSecretProvider(
        [EnvSecretProvider(env=env), MappingSecretProvider(config_secrets or {})]
    )


__all__ = [
    "ChainedSecretProvider",
    "EnvSecretProvider",
    "MappingSecretProvider",
    "SecretNotFoundError",
    "SecretProvider",
    "default_provider",
]

"""Error taxonomy shared by generation, sessions, and publishing."""

from __future__ import annotations


class AutoDraftError(RuntimeError):
    """Base class for all errors raised by autodraft."""


class ConfigurationError(AutoDraftError):
    """Missing credentials, unsupported providers, or invalid settings."""


class ValidationError(AutoDraftError):
    """A request is missing required fields and was rejected up front."""


class SessionNotFoundError(AutoDraftError):
    """The session id is unknown or its TTL has lapsed."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"session not found or expired: {session_id}")
        self.session_id = session_id


class GenerationError(AutoDraftError):
    """The language model call failed or produced unusable output."""


class EmptyModelOutputError(GenerationError):
    """The model returned nothing but whitespace."""

    def __init__(self) -> None:
        super().__init__("model returned empty markdown")


class PublishError(AutoDraftError):
    """A publish step failed; ``step`` names the stage that aborted."""

    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"[{step}] {message}")
        self.step = step


class AuthenticationError(PublishError):
    """Access token exchange with the identity provider failed."""

    def __init__(self, message: str) -> None:
        super().__init__("access_token", message)


class CallCancelledError(AutoDraftError):
    """The caller cancelled the operation or its deadline lapsed."""


__all__ = [
    "AuthenticationError",
    "AutoDraftError",
    "CallCancelledError",
    "ConfigurationError",
    "EmptyModelOutputError",
    "GenerationError",
    "PublishError",
    "SessionNotFoundError",
    "ValidationError",
]

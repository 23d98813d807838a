"""Core primitives: error taxonomy and call contexts."""

from .context import CallContext, ensure_context
from .errors import (
    AuthenticationError,
    AutoDraftError,
    CallCancelledError,
    ConfigurationError,
    EmptyModelOutputError,
    GenerationError,
    PublishError,
    SessionNotFoundError,
    ValidationError,
)

__all__ = [
    "AuthenticationError",
    "AutoDraftError",
    "CallCancelledError",
    "CallContext",
    "ConfigurationError",
    "EmptyModelOutputError",
    "GenerationError",
    "PublishError",
    "SessionNotFoundError",
    "ValidationError",
    "ensure_context",
]

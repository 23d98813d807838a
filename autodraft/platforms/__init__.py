"""Platform integration package."""

from __future__ import annotations

from .base import ContentPublisher, ImageUploader, MediaUploader, PublishParams

__all__ = [
    "ContentPublisher",
    "ImageUploader",
    "MediaUploader",
    "PublishParams",
]

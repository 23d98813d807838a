"""Application services: drafting sessions and publishing their drafts."""

from .drafting_service import DraftingService
from .publishing_service import PublisherFactory, PublishingService
from .wechat_models import DraftArticle, PublishOutcome

__all__ = [
    "DraftArticle",
    "DraftingService",
    "PublishOutcome",
    "PublisherFactory",
    "PublishingService",
]

"""Validation and field extraction for raw model output."""

from __future__ import annotations

import re

from ..core.errors import EmptyModelOutputError
from .models import Draft, Spec

_TITLE_PATTERN = re.compile(r"^#[^\S\n]+(.+)$", re.MULTILINE)


def extract_title(markdown: str) -> str:
    """First top-level ``# heading`` anywhere in the text, or ``""``."""
    match = _TITLE_PATTERN.search(markdown)
    return match.group(1).strip() if match else ""


def post_process(raw_text: str, spec: Spec) -> Draft:
    """Turn model output into a Draft.

    The digest is left empty; the publisher derives a bounded one from the
    body when the caller supplies none.
    """
    _ = spec
    markdown = (raw_text or "").strip()
    if not markdown:
        raise EmptyModelOutputError()
    return Draft(title=extract_title(markdown), digest="", markdown=markdown)


__all__ = ["extract_title", "post_process"]

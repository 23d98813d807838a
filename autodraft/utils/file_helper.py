"""Filesystem helpers."""

from __future__ import annotations

import os
import tempfile
import time
from pathlib import Path
from typing import Iterable

from .logging import get_logger

LOGGER = get_logger(__name__)

TEMP_DRAFT_PREFIX = "draft-"
TEMP_DRAFT_SUFFIX = ".md"


def read_text(path: Path, *, encoding: str = "utf-8") -> str:
    with path.open("r", encoding=encoding) as fp:
        return fp.read()


def write_text(path: Path, data: str, *, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding=encoding) as fp:
        fp.write(data)


def write_temp_markdown(markdown: str, *, directory: Path | None = None) -> Path:
    """Persist ``markdown`` to a fresh ``draft-*.md`` file and return its path."""
    fd, name = tempfile.mkstemp(
        prefix=TEMP_DRAFT_PREFIX,
        suffix=TEMP_DRAFT_SUFFIX,
        dir=str(directory) if directory else None,
    )
    with os.fdopen(fd, "w", encoding="utf-8") as fp:
        fp.write(markdown)
    return Path(name)


def remove_quietly(paths: Iterable[Path | str]) -> int:
    """Best-effort unlink; failures are logged, never raised. Returns removed count."""
    removed = 0
    for raw in paths:
        path = Path(raw)
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            LOGGER.warning("Failed to remove %s: %s", path, exc)
            continue
        removed += 1
        LOGGER.debug("Removed %s", path)
    return removed


def remove_older_than(paths: Iterable[Path], max_age_seconds: float) -> int:
    """Remove files whose mtime is older than ``max_age_seconds``."""
    threshold = time.time() - max_age_seconds
    stale: list[Path] = []
    for path in paths:
        try:
            if path.is_file() and path.stat().st_mtime < threshold:
                stale.append(path)
        except OSError as exc:
            LOGGER.warning("Failed to stat %s: %s", path, exc)
    return remove_quietly(stale)


__all__ = [
    "TEMP_DRAFT_PREFIX",
    "TEMP_DRAFT_SUFFIX",
    "read_text",
    "remove_older_than",
    "remove_quietly",
    "write_temp_markdown",
    "write_text",
]

"""Utility exports."""

from .file_helper import (
    read_text,
    remove_older_than,
    remove_quietly,
    write_temp_markdown,
    write_text,
)
from .html import convert_headings, flatten_lists, normalize_for_wechat
from .logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "convert_headings",
    "flatten_lists",
    "get_logger",
    "normalize_for_wechat",
    "read_text",
    "remove_older_than",
    "remove_quietly",
    "write_temp_markdown",
    "write_text",
]

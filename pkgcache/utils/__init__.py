"""Utility helpers for href handling and logging."""

from pkgcache.utils.url import (
    child_path,
    child_url,
    ensure_trailing_slash,
    is_directory_link,
    is_followable,
    link_filename,
)
from pkgcache.utils.log import setup_logging, log

__all__ = [
    "child_path",
    "child_url",
    "ensure_trailing_slash",
    "is_directory_link",
    "is_followable",
    "link_filename",
    "setup_logging",
    "log",
]

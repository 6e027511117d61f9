"""
Href classification and child URL / local path composition.
"""

import urllib.parse
from pathlib import Path

from pkgcache.config import SKIP_PREFIXES, SKIP_SCHEMES_RE
from pkgcache.errors import AccessDenied


def ensure_trailing_slash(url: str) -> str:
    """Return *url* with exactly one guaranteed trailing ``/``."""
    return url if url.endswith("/") else url + "/"


def _stays_below(href: str) -> bool:
    if not href or href.startswith(SKIP_PREFIXES) or SKIP_SCHEMES_RE.match(href):
        return False
    segments = href.rstrip("/").split("/")
    return all(seg not in ("", ".", "..") for seg in segments)


def is_followable(href: str) -> bool:
    """
    Return True for a listing link that stays inside the mirrored subtree.

    Absolute paths, ``http:``/``https:`` links, navigation links
    (``./``, ``../``, ``.hidden``), queries and fragments are rejected, as
    is any relative link with an empty, ``.`` or ``..`` segment further in.
    The same rules apply to the percent-decoded href, which must not
    gain a ``/`` or a NUL from decoding either.
    """
    if not _stays_below(href):
        return False
    decoded = urllib.parse.unquote(href)
    if "\0" in decoded or decoded.count("/") != href.count("/"):
        return False
    return _stays_below(decoded)


def is_directory_link(href: str) -> bool:
    return href.endswith("/")


def link_filename(href: str) -> str:
    """Percent-decoded last path component of a file link."""
    return urllib.parse.unquote(href.rstrip("/").rsplit("/", 1)[-1])


def child_url(parent_url: str, href: str) -> str:
    """Remote URL of *href* listed on the page at *parent_url*."""
    return ensure_trailing_slash(parent_url) + href


def child_path(parent_dir: Path, href: str) -> Path:
    """
    Local mirror path of *href* inside *parent_dir*.

    Raises ``AccessDenied`` when the decoded href would land outside
    *parent_dir*.
    """
    parent_dir = Path(parent_dir)
    path = parent_dir / urllib.parse.unquote(href)
    if not path.resolve().is_relative_to(parent_dir.resolve()):
        raise AccessDenied(f"{href!r} leads outside {parent_dir}")
    return path

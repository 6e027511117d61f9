"""
Configuration constants for the package cache mirror.
"""

import os
import re

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_LIST_FILENAME = ".pkgcachelist"
TEMP_FILENAME = ".pkgcachetemp"
PARTIAL_SUFFIX = ".part"

DEFAULT_TIMEOUT = 180          # seconds; a slow mirror can stall for minutes
MIN_TIMEOUT = 2
TIMEOUT_ENV_VAR = "HTTP_TIMEOUT"

# ---------------------------------------------------------------------------
# Scanner tuning
# ---------------------------------------------------------------------------
CHUNK_SIZE = 2048              # bytes handed to the tokenizers per step
DOWNLOAD_CHUNK_SIZE = 65536    # bytes per network read
MAX_TOKEN_LENGTH = 499         # href / manifest string cap
MAX_NAME_LENGTH = 49           # package base-name cap

# PackageIndex storage
INITIAL_CAPACITY = 50
MIN_FREE_SLOTS = 2
LINEAR_SEARCH_THRESHOLD = 8

# ---------------------------------------------------------------------------
# Package archives
# ---------------------------------------------------------------------------
MANIFEST_ENTRY = "+MANIFEST"
DEPS_KEY = "deps"

ARCHIVE_SUFFIXES = (".pkg", ".txz", ".tzst", ".tbz", ".tgz", ".tar")

# Repository metadata, fetched on every run whatever the package list says.
DOWNLOAD_ALWAYS = frozenset({
    "digests.txz",
    "meta.txz",
    "packagesite.txz",
    "pkg-devel.txz",
    "pkg.txz",
    "pkg.txz.sig",
    # pkg >= 1.17 repository layout
    "meta.conf",
    "digests.pkg",
    "packagesite.pkg",
    "data.pkg",
    "pkg.pkg",
    "pkg.pkg.sig",
})

# Listing links that leave the mirrored subtree or point back at it.
SKIP_PREFIXES = ("/", ".", "?", "#")
SKIP_SCHEMES_RE = re.compile(r"^https?:", re.IGNORECASE)

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
MAX_RETRIES = 3
RETRY_BACKOFF = 0.5
RETRY_STATUS_CODES = (500, 502, 503, 504)
USER_AGENT = "pkgcache/1.1 (+https://github.com/fossette/pkgcache/wiki)"

# Package enumeration tool used by the ``create`` command
PKG_INFO_COMMAND = ["pkg", "info"]


def resolve_timeout(requested: int | None = None) -> int:
    """Pick the HTTP timeout in seconds.

    An explicit value wins when it is at least ``MIN_TIMEOUT``; otherwise
    ``$HTTP_TIMEOUT`` is used under the same rule, and ``DEFAULT_TIMEOUT``
    covers everything else.
    """
    if requested is not None and requested >= MIN_TIMEOUT:
        return requested
    raw = os.environ.get(TIMEOUT_ENV_VAR, "").strip()
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_TIMEOUT
    return value if value >= MIN_TIMEOUT else DEFAULT_TIMEOUT

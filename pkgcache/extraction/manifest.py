"""
Resumable string/brace scanner for package manifests.

A package ``+MANIFEST`` is a nested object (JSON/UCL).  Rather than
parsing it, the scanner only tracks brace depth and quoted-string
boundaries: every closed string is handed back together with the depth
it was found at, and the caller decides what the position means.
"""

import enum
from dataclasses import dataclass, field
from typing import Iterator, NamedTuple

from pkgcache.config import MAX_TOKEN_LENGTH

_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_OPEN = ord("{")
_CLOSE = ord("}")


class ManifestMode(enum.Enum):
    DEFAULT = "default"
    IN_QUOTED_STRING = "in_quoted_string"


class ManifestToken(NamedTuple):
    text: str
    level: int


@dataclass
class ManifestState:
    """Scanner state carried between chunks of one manifest."""

    mode: ManifestMode = ManifestMode.DEFAULT
    level: int = 0
    buffer: bytearray = field(default_factory=bytearray)
    escaped: bool = False
    # Interpretation state, owned by the dependency scanner.
    deps_found: bool = False
    deps_level: int = 0
    deps_count: int = 0


def scan_manifest(chunk: bytes, state: ManifestState) -> Iterator[ManifestToken]:
    """
    Yield each quoted string completed in *chunk* with its brace level.

    Keys and values are not told apart.  ``\\"`` inside a string does not
    close it.  Strings longer than ``MAX_TOKEN_LENGTH`` bytes are
    truncated; scanning resynchronises on the real closing quote.
    """
    for byte in chunk:
        if state.mode is ManifestMode.IN_QUOTED_STRING:
            if state.escaped:
                state.escaped = False
            elif byte == _BACKSLASH:
                state.escaped = True
                continue
            elif byte == _QUOTE:
                state.mode = ManifestMode.DEFAULT
                text = bytes(state.buffer).decode("utf-8", errors="replace")
                state.buffer.clear()
                yield ManifestToken(text, state.level)
                continue
            if len(state.buffer) < MAX_TOKEN_LENGTH:
                state.buffer.append(byte)
        elif byte == _QUOTE:
            state.mode = ManifestMode.IN_QUOTED_STRING
        elif byte == _OPEN:
            state.level += 1
        elif byte == _CLOSE:
            state.level -= 1


class ManifestTokenizer:
    """Wrapper owning a :class:`ManifestState` for one manifest stream."""

    def __init__(self) -> None:
        self.state = ManifestState()

    def feed(self, chunk: bytes) -> Iterator[ManifestToken]:
        return scan_manifest(chunk, self.state)

"""
Resumable ``href`` scanner for directory-listing pages.

The page is fed in fixed-size chunks.  All parser state lives in a
:class:`LinkState` that the caller threads from one chunk to the next, so
a tag, attribute name or quoted value may straddle any chunk boundary.

Only double-quoted ``href`` values of ``<a>`` tags are extracted; the
closing ``</html>`` tag marks the end of the document.
"""

import enum
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator

from pkgcache.config import CHUNK_SIZE, MAX_TOKEN_LENGTH
from pkgcache.utils.log import log

_LT = ord("<")
_GT = ord(">")
_QUOTE = ord('"')
_SLASH = ord("/")
_WHITESPACE = frozenset(b" \t\n\v\f\r")

_ANCHOR_TAG = b"a"
_HREF_NAMES = (b"href", b"href=")
_DOCUMENT_END = b"/html"


class LinkMode(enum.Enum):
    IDLE = "idle"                          # between tags
    IN_TAG = "in_tag"                      # reading the tag name after '<'
    IN_OTHER_TAG = "in_other_tag"          # inside a tag we ignore, up to '>'
    IN_ATTR_NAME = "in_attr_name"          # inside <a ...>, reading attribute names
    IN_HREF_VALUE = "in_href_value"        # inside href="..."
    IN_OTHER_QUOTED_VALUE = "in_other_quoted_value"
    IN_CLOSE_TAG = "in_close_tag"          # reading "</name"
    DONE = "done"                          # </html> seen


@dataclass
class LinkState:
    """Scanner state carried between chunks of one document."""

    mode: LinkMode = LinkMode.IDLE
    buffer: bytearray = field(default_factory=bytearray)
    # Where a discarded quoted value hands control back to.
    resume: LinkMode = LinkMode.IN_OTHER_TAG
    # Set when the current href value ran past MAX_TOKEN_LENGTH.
    overflow: bool = False

    @property
    def done(self) -> bool:
        return self.mode is LinkMode.DONE

    def _take(self) -> str:
        value = bytes(self.buffer).decode("utf-8", errors="replace")
        self.buffer.clear()
        return value

    def _push(self, byte: int) -> None:
        if len(self.buffer) < MAX_TOKEN_LENGTH:
            self.buffer.append(byte)
        else:
            self.overflow = True


def scan_links(chunk: bytes, state: LinkState) -> Iterator[str]:
    """
    Yield every complete ``href`` value found in *chunk*.

    *state* is updated in place; pass the same object with the next chunk.
    Once ``state.done`` is set the rest of the chunk, and any later chunk,
    is ignored.  Values longer than ``MAX_TOKEN_LENGTH`` bytes are
    dropped, and scanning resumes after their closing quote.
    """
    for byte in chunk:
        mode = state.mode

        if mode is LinkMode.DONE:
            return

        if mode is LinkMode.IDLE:
            if byte == _LT:
                state.buffer.clear()
                state.mode = LinkMode.IN_TAG

        elif mode is LinkMode.IN_HREF_VALUE:
            if byte == _QUOTE:
                state.mode = LinkMode.IN_OTHER_TAG
                value = state._take()
                if state.overflow:
                    log.debug("  [SKIP] href longer than %d bytes: %s...",
                              MAX_TOKEN_LENGTH, value[:60])
                else:
                    yield value
            else:
                state._push(byte)

        elif mode is LinkMode.IN_OTHER_QUOTED_VALUE:
            if byte == _QUOTE:
                state.mode = state.resume

        elif byte == _GT:
            # Every remaining mode is inside a tag.
            if mode is LinkMode.IN_CLOSE_TAG and bytes(state.buffer).lower() == _DOCUMENT_END:
                state.mode = LinkMode.DONE
                return
            state.buffer.clear()
            state.mode = LinkMode.IDLE

        elif mode is LinkMode.IN_TAG:
            if byte in _WHITESPACE:
                if bytes(state.buffer).lower() == _ANCHOR_TAG:
                    state.mode = LinkMode.IN_ATTR_NAME
                else:
                    state.mode = LinkMode.IN_OTHER_TAG
                state.buffer.clear()
            elif byte == _QUOTE:
                state.resume = LinkMode.IN_OTHER_TAG
                state.mode = LinkMode.IN_OTHER_QUOTED_VALUE
            elif byte == _SLASH:
                state.buffer[:] = b"/"
                state.mode = LinkMode.IN_CLOSE_TAG
            else:
                state._push(byte)

        elif mode is LinkMode.IN_ATTR_NAME:
            if byte in _WHITESPACE:
                # Tolerate whitespace before and after the '=' only.
                if bytes(state.buffer).lower() not in _HREF_NAMES:
                    state.buffer.clear()
            elif byte == _QUOTE:
                if bytes(state.buffer).lower() in _HREF_NAMES:
                    state.mode = LinkMode.IN_HREF_VALUE
                    state.overflow = False
                else:
                    state.resume = LinkMode.IN_ATTR_NAME
                    state.mode = LinkMode.IN_OTHER_QUOTED_VALUE
                state.buffer.clear()
            else:
                state._push(byte)

        elif mode is LinkMode.IN_CLOSE_TAG:
            state._push(byte)

        elif mode is LinkMode.IN_OTHER_TAG:
            if byte == _QUOTE:
                state.resume = LinkMode.IN_OTHER_TAG
                state.mode = LinkMode.IN_OTHER_QUOTED_VALUE


class LinkTokenizer:
    """
    Convenience wrapper owning a :class:`LinkState` for one document.

    >>> tok = LinkTokenizer()
    >>> list(tok.feed(b'<a href="pkg/">pkg</a></html>'))
    ['pkg/']
    >>> tok.done
    True
    """

    def __init__(self) -> None:
        self.state = LinkState()

    @property
    def done(self) -> bool:
        return self.state.done

    def feed(self, chunk: bytes) -> Iterator[str]:
        return scan_links(chunk, self.state)

    def iter_stream(self, stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Iterator[str]:
        """Read *stream* chunk by chunk until ``</html>`` or end of input."""
        while not self.done:
            chunk = stream.read(chunk_size)
            if not chunk:
                return
            yield from self.feed(chunk)

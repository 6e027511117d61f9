"""
Dependency discovery inside downloaded package archives.

A FreeBSD package is a compressed tarball whose ``+MANIFEST`` entry
describes the package, including a ``deps`` object keyed by dependency
name::

    {"name":"curl", ..., "deps":{"ca_root_nss":{"origin":"security/ca_root_nss",
     "version":"3.93"},"libnghttp2":{...}}, "categories":[...], ...}

The manifest is streamed through :class:`ManifestTokenizer` and the
immediate keys of ``deps`` are added to the :class:`PackageIndex`.
"""

import lzma
import tarfile
import zlib
from pathlib import Path
from typing import Callable, Iterable, Iterator

from pkgcache.config import CHUNK_SIZE, DEPS_KEY, MANIFEST_ENTRY
from pkgcache.core.index import PackageIndex
from pkgcache.errors import ArchiveError
from pkgcache.extraction.manifest import ManifestState, ManifestToken, ManifestTokenizer
from pkgcache.utils.log import log

# Everything a corrupt or truncated compressed tarball can raise.
_DECODE_ERRORS = (OSError, EOFError, tarfile.TarError, lzma.LZMAError, zlib.error)


class TarArchive:
    """
    Sequential, single-pass reader over a compressed tar archive.

    The compression is detected from the data (gzip, bzip2, xz, and zstd
    where the interpreter supports it).  The file is never seeked.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._tar: tarfile.TarFile | None = None

    def __enter__(self) -> "TarArchive":
        try:
            self._tar = tarfile.open(self.path, mode="r|*")
        except _DECODE_ERRORS as exc:
            raise ArchiveError(self.path, f"cannot open archive: {exc}") from exc
        return self

    def __exit__(self, *exc_info) -> None:
        if self._tar is not None:
            self._tar.close()
            self._tar = None

    def entries(self) -> Iterator[tarfile.TarInfo]:
        try:
            for member in self._tar:
                yield member
        except _DECODE_ERRORS as exc:
            raise ArchiveError(self.path, f"cannot list archive: {exc}") from exc

    def read_chunks(self, entry: tarfile.TarInfo, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the decompressed content of *entry* in chunks."""
        try:
            fh = self._tar.extractfile(entry)
            if fh is None:
                return
            while True:
                chunk = fh.read(chunk_size)
                if not chunk:
                    return
                yield chunk
        except _DECODE_ERRORS as exc:
            raise ArchiveError(self.path, f"cannot read {entry.name}: {exc}") from exc


def entry_name(entry) -> str:
    return entry.name.removeprefix("./")


class DependencyScanner:
    """
    Registers the dependencies of downloaded packages into *index*.

    *archive_factory* opens an archive path and returns a context manager
    offering ``entries()`` and ``read_chunks(entry, size)``; it defaults to
    :class:`TarArchive`.
    """

    def __init__(
        self,
        index: PackageIndex,
        archive_factory: Callable[[Path], TarArchive] = TarArchive,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self.index = index
        self.archive_factory = archive_factory
        self.chunk_size = chunk_size

    def scan(self, archive_path: Path) -> int:
        """
        Add the dependencies listed in the manifest of *archive_path*.

        Returns how many dependency names were seen.  An archive without a
        manifest, or a manifest without ``deps``, simply has none.
        """
        archive_path = Path(archive_path)
        with self.archive_factory(archive_path) as archive:
            for entry in archive.entries():
                if entry_name(entry) != MANIFEST_ENTRY:
                    continue
                before = self.index.stat_new()
                count = self.scan_manifest(archive.read_chunks(entry, self.chunk_size))
                if count:
                    log.info("  [DEPS] %d dependencies in %s (%d new)",
                             count, archive_path.name, self.index.stat_new() - before)
                return count
        log.debug("  No %s in %s", MANIFEST_ENTRY, archive_path.name)
        return 0

    def scan_manifest(self, chunks: Iterable[bytes]) -> int:
        """Feed manifest *chunks* through the tokenizer until the ``deps``
        object closes or the input ends."""
        tokenizer = ManifestTokenizer()
        state = tokenizer.state
        for chunk in chunks:
            for token in tokenizer.feed(chunk):
                if self._interpret(token, state):
                    return state.deps_count
        return state.deps_count

    def _interpret(self, token: ManifestToken, state: ManifestState) -> bool:
        """Apply one manifest string; return True once ``deps`` has closed."""
        if not state.deps_found:
            if token.text == DEPS_KEY:
                state.deps_found = True
                state.deps_level = token.level
                state.deps_count = 0
            return False

        if token.level == state.deps_level + 1:
            log.debug("  [DEPS] %s", token.text)
            self.index.add(token.text)
            state.deps_count += 1
            return False

        # Back at (or above) the level "deps" was declared at: the
        # dependency object is over and nothing after it matters.
        return token.level <= state.deps_level

"""
Recursive repository mirror.

Walks the directory listings of a remote package repository, starting at
the URL stored in the package list, and downloads:

* repository metadata (``DOWNLOAD_ALWAYS``) on every run
* every package whose base-name is in the :class:`PackageIndex` and that
  is not on disk yet

Each downloaded package archive is scanned for dependencies, which join
the index immediately and are matched against the links that follow.
"""

import contextlib
from pathlib import Path
from typing import Callable

from tqdm import tqdm

from pkgcache.config import (
    ARCHIVE_SUFFIXES,
    CHUNK_SIZE,
    DOWNLOAD_ALWAYS,
    PARTIAL_SUFFIX,
    TEMP_FILENAME,
)
from pkgcache.core.deps import DependencyScanner
from pkgcache.core.index import PackageIndex
from pkgcache.core.storage import PathKind, make_path, path_exists, scratch_file, stream_to_file
from pkgcache.errors import AccessDenied, IncompletePage, ReadFailure, RepositoryUrlMissing, WriteFailure
from pkgcache.extraction.links import LinkTokenizer
from pkgcache.session import HttpFetcher
from pkgcache.utils.log import log
from pkgcache.utils.url import child_path, child_url, is_directory_link, is_followable, link_filename


def is_download_always(filename: str) -> bool:
    return filename.lower() in DOWNLOAD_ALWAYS


def is_archive(filename: str) -> bool:
    return filename.lower().endswith(ARCHIVE_SUFFIXES)


class Crawler:
    """
    Mirrors the part of a package repository selected by *index*.

    *fetcher* must provide ``get(url)`` yielding byte chunks and
    *scanner* must provide ``scan(path)``; both default to the real
    network and archive implementations.
    """

    def __init__(
        self,
        index: PackageIndex,
        output_dir: Path,
        fetcher: HttpFetcher | None = None,
        scanner: DependencyScanner | None = None,
        chunk_size: int = CHUNK_SIZE,
        progress: bool = False,
    ) -> None:
        self.index = index
        self.output_dir = Path(output_dir)
        self.fetcher = fetcher if fetcher is not None else HttpFetcher()
        self.scanner = scanner if scanner is not None else DependencyScanner(index)
        self.chunk_size = chunk_size
        self.progress = progress
        self._bar: tqdm | None = None
        self._stats = {"dirs": 0, "downloaded": 0, "present": 0,
                       "failed": 0, "deps": 0, "passes": 0}

    @property
    def stats(self) -> dict[str, int]:
        return dict(self._stats)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, confirm_retry: Callable[[IncompletePage], bool] | None = None) -> None:
        """
        Mirror the repository until a pass discovers no new package.

        Dependencies found after their directory was already listed are
        picked up by the next pass.  When a page does not load completely,
        *confirm_retry* decides whether to start over; without it the
        ``IncompletePage`` propagates.
        """
        if not self.index.repo_url:
            raise RepositoryUrlMissing("The package list has no repository URL")

        log.info("Repository URL   : %s", self.index.repo_url)
        log.info("Cache directory  : %s", self.output_dir.resolve())
        log.info("Wanted packages  : %d", len(self.index))

        with tqdm(desc="Mirroring", unit="file", dynamic_ncols=True,
                  disable=not self.progress) as bar:
            self._bar = bar
            try:
                self._run_passes(confirm_retry)
            finally:
                self._bar = None

        log.info(
            "Mirror complete. passes=%d  dirs=%d  downloaded=%d  present=%d  "
            "failed=%d  deps=%d",
            self._stats["passes"],
            self._stats["dirs"],
            self._stats["downloaded"],
            self._stats["present"],
            self._stats["failed"],
            self._stats["deps"],
        )

    def mirror(self, remote_url: str, local_dir: Path) -> None:
        """
        Mirror the listing at *remote_url* into *local_dir*, recursing into
        sub-directories.

        The page is saved to a scratch file first so that no two
        retrievals are ever open at once.  Raises ``IncompletePage`` when
        the page ends before ``</html>``; calling again with the same
        arguments is the way to retry.
        """
        local_dir = Path(local_dir)
        make_path(local_dir)
        self._stats["dirs"] += 1
        log.info("[DIR] %s", remote_url)

        with scratch_file(local_dir / TEMP_FILENAME) as page_path:
            self._retrieve_page(remote_url, page_path)

            tokenizer = LinkTokenizer()
            try:
                fh = page_path.open("rb")
            except OSError as exc:
                raise AccessDenied(f"Cannot read back {page_path}: {exc}") from exc
            with fh:
                for href in tokenizer.iter_stream(fh, self.chunk_size):
                    self._process_link(href, remote_url, local_dir)

            if not tokenizer.done:
                log.error("[ERR] %s didn't load completely.", remote_url)
                raise IncompletePage(remote_url)

    def should_download(self, filename: str, local_path: Path) -> bool:
        """Metadata files always; packages when wanted and not yet on disk."""
        if is_download_always(filename):
            return True
        return filename in self.index and not path_exists(local_path, PathKind.FILE)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run_passes(self, confirm_retry) -> None:
        while True:
            self._stats["passes"] += 1
            new_before = self.index.stat_new()
            try:
                self.mirror(self.index.repo_url, self.output_dir)
            except IncompletePage as exc:
                if confirm_retry is None or not confirm_retry(exc):
                    raise
                log.info("[RETRY] Restarting from %s", self.index.repo_url)
                continue

            added = self.index.stat_new() - new_before
            if not added:
                return
            log.info("%d new package(s) discovered, starting pass %d",
                     added, self._stats["passes"] + 1)

    def _retrieve_page(self, remote_url: str, page_path: Path) -> None:
        try:
            size = stream_to_file(page_path, self.fetcher.get(remote_url))
        except ReadFailure as exc:
            if exc.status is not None:
                raise
            # Timed out or cut short: the listing is incomplete, not gone.
            log.warning("[WARN] %s", exc)
            raise IncompletePage(remote_url) from exc
        log.debug("  Listing %s: %d bytes", remote_url, size)

    def _process_link(self, href: str, remote_url: str, local_dir: Path) -> None:
        if not is_followable(href):
            log.debug("  [SKIP] %s", href)
            return

        url = child_url(remote_url, href)
        try:
            local_path = child_path(local_dir, href)
        except AccessDenied as exc:
            log.warning("[SKIP] %s", exc)
            return
        if is_directory_link(href):
            self.mirror(url, local_path)
            return

        if self._bar is not None:
            self._bar.update(1)

        filename = link_filename(href)
        if not self.should_download(filename, local_path):
            if filename in self.index:
                self._stats["present"] += 1
                log.debug("  [SKIP] Already on disk: %s", filename)
            return

        self._fetch_file(url, local_path, filename)

    def _fetch_file(self, url: str, local_path: Path, filename: str) -> None:
        """Download one file; a failed transfer is skipped with a warning."""
        log.info("[GET] Downloading %s", filename)
        make_path(local_path.parent)
        partial = local_path.with_name(local_path.name + PARTIAL_SUFFIX)
        try:
            size = stream_to_file(partial, self.fetcher.get(url))
            partial.replace(local_path)
        except ReadFailure as exc:
            self._stats["failed"] += 1
            log.warning("[WARN] Skipping %s, download failed! (%s)", filename, exc)
            return
        except OSError as exc:
            raise WriteFailure(f"Cannot move {partial} into place: {exc}") from exc
        finally:
            with contextlib.suppress(FileNotFoundError):
                partial.unlink()

        self._stats["downloaded"] += 1
        log.info("  [SAVE] %s (%d bytes)", local_path, size)

        if is_archive(filename):
            self._stats["deps"] += self.scanner.scan(local_path)

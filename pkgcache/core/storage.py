"""
Filesystem helpers – existence checks, directory creation, scratch files
and streaming downloads to disk.
"""

import contextlib
import enum
from pathlib import Path
from typing import Iterable, Iterator

from pkgcache.errors import AccessDenied, WriteFailure
from pkgcache.utils.log import log


class PathKind(enum.Enum):
    ANY = 0
    FILE = 1
    DIR = 2


def path_exists(path: Path, kind: PathKind = PathKind.ANY) -> bool:
    """Return True if *path* exists and, unless *kind* is ANY, has that type."""
    path = Path(path)
    if kind is PathKind.FILE:
        return path.is_file()
    if kind is PathKind.DIR:
        return path.is_dir()
    return path.exists()


def make_path(path: Path) -> None:
    """Create directory *path* and any missing parents."""
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise AccessDenied(f"Cannot create directory {path}: {exc}") from exc


@contextlib.contextmanager
def scratch_file(path: Path) -> Iterator[Path]:
    """Hand out *path* as a scratch file and delete it on the way out,
    however the block exits."""
    path = Path(path)
    try:
        yield path
    finally:
        with contextlib.suppress(FileNotFoundError):
            path.unlink()


def stream_to_file(local_path: Path, chunks: Iterable[bytes]) -> int:
    """Write streaming *chunks* to *local_path*.

    Returns the total number of bytes written.  Errors raised by the chunk
    source propagate untouched; local I/O errors become ``AccessDenied``
    (cannot open) or ``WriteFailure`` (cannot write).
    """
    local_path = Path(local_path)
    try:
        fh = local_path.open("wb")
    except OSError as exc:
        raise AccessDenied(f"Cannot create {local_path}: {exc}") from exc

    total = 0
    with fh:
        for chunk in chunks:
            if not chunk:
                continue
            try:
                fh.write(chunk)
            except OSError as exc:
                raise WriteFailure(f"Cannot write {local_path}: {exc}") from exc
            total += len(chunk)
    log.debug("Streamed → %s (%d bytes)", local_path, total)
    return total

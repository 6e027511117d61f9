"""
Sorted, deduplicated list of wanted package base-names.

The index is the only state shared by a whole mirror run: the package
list file seeds it, the dependency scanner grows it while archives are
downloaded, and the crawler consults it for every file link it meets.

Persisted format (text, one entry per line)::

    <repository base URL>      always stored with a trailing '/'
    <package base-name>        sorted ascending, one per line
"""

import re
from pathlib import Path
from typing import Iterator

from pkgcache.config import (
    INITIAL_CAPACITY,
    LINEAR_SEARCH_THRESHOLD,
    MAX_NAME_LENGTH,
    MIN_FREE_SLOTS,
)
from pkgcache.errors import AccessDenied, ResourceExhaustion, WriteFailure
from pkgcache.utils.log import log
from pkgcache.utils.url import ensure_trailing_slash

# A version starts at the first "-<digit>"; whitespace ends the name too.
_NAME_END_RE = re.compile(r"-[0-9]|\s", re.ASCII)


def normalize_name(raw: str | None) -> str:
    """
    Reduce *raw* to a package base-name.

    ``"curl-8.5.0"`` → ``"curl"``, ``"py39-pip-23.0 Python installer"`` →
    ``"py39-pip"``.  The result is capped at ``MAX_NAME_LENGTH`` characters
    and may be empty.
    """
    if not raw:
        return ""
    m = _NAME_END_RE.search(raw)
    name = raw[:m.start()] if m else raw
    return name[:MAX_NAME_LENGTH]


class PackageIndex:
    """
    Ordered set of package base-names plus the repository URL.

    Names live in a slot array that starts at ``INITIAL_CAPACITY`` entries
    and doubles whenever fewer than ``MIN_FREE_SLOTS`` remain.  ``new`` and
    ``existing`` count the outcome of every :meth:`add` since the last
    :meth:`load`.
    """

    def __init__(self, repo_url: str = "") -> None:
        self.repo_url = ensure_trailing_slash(repo_url) if repo_url else ""
        self._slots: list[str | None] = []
        self._count = 0
        self._hint = 0
        self._generation = 0
        self._exhausted = False
        self.new = 0
        self.existing = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, raw_name: str) -> bool | None:
        """
        Register *raw_name*.

        Returns True when the normalised name was inserted, False when it
        was already present and None when it normalised to nothing.
        """
        name = normalize_name(raw_name)
        if not name:
            return None
        if self._exhausted:
            raise ResourceExhaustion("package index storage is exhausted")
        self._reserve()

        pos, found = self._locate(name)
        self._hint = pos
        if found:
            self.existing += 1
            return False

        # Shift the tail one slot right and drop the name into the gap.
        self._slots[pos + 1:self._count + 1] = self._slots[pos:self._count]
        self._slots[pos] = name
        self._count += 1
        self._generation += 1
        self.new += 1
        return True

    def contains(self, raw_name: str) -> bool:
        name = normalize_name(raw_name)
        if not name or not self._count:
            return False
        return self._search(name, 0, self._count)[1]

    def iterate(self) -> Iterator[str]:
        """
        Yield the names in ascending order.

        Like a dict view, the iterator is invalidated by an intervening
        :meth:`add` that inserts a name; start a new one afterwards.
        """
        generation = self._generation
        for i in range(self._count):
            if self._generation != generation:
                raise RuntimeError("PackageIndex changed during iteration")
            yield self._slots[i]

    def stat_new(self) -> int:
        return self.new

    def stat_existing(self) -> int:
        return self.existing

    def reset_stats(self) -> None:
        self.new = 0
        self.existing = 0

    def load(self, path: Path) -> bool:
        """
        Merge the package list stored at *path* into the index.

        The first line is the repository URL, the rest are package names.
        A missing file leaves the index untouched and returns False.
        Session counters are reset afterwards: loading is not activity.
        """
        path = Path(path)
        try:
            fh = path.open("r", encoding="utf-8", errors="replace")
        except FileNotFoundError:
            log.debug("No package list at %s yet", path)
            return False
        except OSError as exc:
            raise AccessDenied(f"Cannot open {path}: {exc}") from exc

        with fh:
            url = fh.readline().rstrip("\r\n")
            if url:
                self.repo_url = ensure_trailing_slash(url)
            for line in fh:
                self.add(line)

        log.debug("Loaded %d package name(s) from %s", self._count, path)
        self.reset_stats()
        return True

    def save(self, path: Path) -> None:
        """
        Write the repository URL and every name, in order, to *path*.

        The file is rewritten in place; a failure part-way leaves it
        truncated.
        """
        path = Path(path)
        try:
            fh = path.open("w", encoding="utf-8", newline="\n")
        except OSError as exc:
            raise AccessDenied(f"Cannot create {path}: {exc}") from exc

        try:
            with fh:
                fh.write(self.repo_url + "\n")
                for name in self.iterate():
                    fh.write(name + "\n")
        except OSError as exc:
            raise WriteFailure(f"Cannot write {path}: {exc}") from exc
        log.debug("Saved %d package name(s) to %s", self._count, path)

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return self._count

    def __contains__(self, raw_name: object) -> bool:
        return isinstance(raw_name, str) and self.contains(raw_name)

    def __iter__(self) -> Iterator[str]:
        return self.iterate()

    def __repr__(self) -> str:
        return (f"PackageIndex(repo_url={self.repo_url!r}, size={self._count}, "
                f"new={self.new}, existing={self.existing})")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def _reserve(self) -> None:
        """Grow the slot array before it runs out of free slots."""
        if not self._slots:
            new_capacity = INITIAL_CAPACITY
        elif len(self._slots) - self._count < MIN_FREE_SLOTS:
            new_capacity = len(self._slots) * 2
        else:
            return
        try:
            self._slots.extend([None] * (new_capacity - len(self._slots)))
        except MemoryError as exc:
            self._exhausted = True
            raise ResourceExhaustion(
                f"cannot grow package index to {new_capacity} entries"
            ) from exc

    def _locate(self, name: str) -> tuple[int, bool]:
        """Insertion point of *name*, probing the last touched slot first.

        Names arriving from a sorted source land right after the previous
        one, so a single comparison usually settles which half to search.
        """
        if not self._count:
            return 0, False
        hint = min(self._hint, self._count - 1)
        probe = self._slots[hint]
        if probe == name:
            return hint, True
        if probe < name:
            return self._search(name, hint + 1, self._count)
        return self._search(name, 0, hint)

    def _search(self, name: str, lo: int, hi: int) -> tuple[int, bool]:
        """Binary search over ``slots[lo:hi]``, finishing linearly once the
        range is shorter than ``LINEAR_SEARCH_THRESHOLD``."""
        slots = self._slots
        while hi - lo >= LINEAR_SEARCH_THRESHOLD:
            mid = (lo + hi) // 2
            probe = slots[mid]
            if probe == name:
                return mid, True
            if probe < name:
                lo = mid + 1
            else:
                hi = mid
        while lo < hi and slots[lo] < name:
            lo += 1
        return lo, lo < hi and slots[lo] == name

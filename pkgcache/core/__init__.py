"""Core logic – package index, dependency scanner, mirror and storage."""

from pkgcache.core.index import PackageIndex, normalize_name
from pkgcache.core.deps import DependencyScanner, TarArchive
from pkgcache.core.crawler import Crawler
from pkgcache.core.storage import PathKind, make_path, path_exists, scratch_file, stream_to_file

__all__ = [
    "PackageIndex",
    "normalize_name",
    "DependencyScanner",
    "TarArchive",
    "Crawler",
    "PathKind",
    "make_path",
    "path_exists",
    "scratch_file",
    "stream_to_file",
]

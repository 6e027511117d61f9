"""
pkgcache
========
Keeps a local cache of FreeBSD packages for offline installation.

A package list file (``.pkgcachelist`` by default) holds the repository
URL on its first line and one package base-name per line after it.  The
``download`` command mirrors the matching part of the repository and
adds every dependency it finds to the list.

Package structure
-----------------
pkgcache/
├── __init__.py       – package init and public API
├── config.py         – configuration constants
├── errors.py         – exception hierarchy
├── session.py        – requests.Session factory and HttpFetcher
├── cli.py            – argparse CLI (``python -m pkgcache``)
├── core/
│   ├── index.py      – PackageIndex (sorted package-name set)
│   ├── deps.py       – TarArchive and DependencyScanner
│   ├── crawler.py    – recursive Crawler
│   └── storage.py    – filesystem helpers
├── extraction/
│   ├── links.py      – resumable href scanner for listing pages
│   └── manifest.py   – resumable scanner for package manifests
└── utils/
    ├── log.py        – logging setup
    └── url.py        – href classification and path helpers

Quick start
-----------
    from pathlib import Path
    from pkgcache import Crawler, PackageIndex

    index = PackageIndex()
    index.load(Path("cache/.pkgcachelist"))
    Crawler(index, Path("cache")).run()
    index.save(Path("cache/.pkgcachelist"))
"""

from .core.crawler import Crawler
from .core.deps import DependencyScanner, TarArchive
from .core.index import PackageIndex, normalize_name
from .extraction import LinkTokenizer, ManifestTokenizer, scan_links, scan_manifest
from .session import HttpFetcher, build_session

__version__ = "1.1.0"

__all__ = [
    "Crawler",
    "DependencyScanner",
    "TarArchive",
    "PackageIndex",
    "normalize_name",
    "LinkTokenizer",
    "ManifestTokenizer",
    "scan_links",
    "scan_manifest",
    "HttpFetcher",
    "build_session",
]

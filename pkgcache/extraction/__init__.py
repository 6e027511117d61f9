"""Incremental tokenizers for listing pages and package manifests."""

from pkgcache.extraction.links import LinkMode, LinkState, LinkTokenizer, scan_links
from pkgcache.extraction.manifest import (
    ManifestMode,
    ManifestState,
    ManifestToken,
    ManifestTokenizer,
    scan_manifest,
)

__all__ = [
    "LinkMode",
    "LinkState",
    "LinkTokenizer",
    "scan_links",
    "ManifestMode",
    "ManifestState",
    "ManifestToken",
    "ManifestTokenizer",
    "scan_manifest",
]

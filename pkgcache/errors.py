"""Exceptions raised by the package cache mirror.

Every class carries a ``summary``: the one-line, user-facing description
the CLI prints when a run stops on that kind of failure.
"""


class PkgCacheError(Exception):
    """Base exception for all pkgcache failures."""

    summary = "pkgcache failed"


class AccessDenied(PkgCacheError):
    """Raised when a path cannot be opened, created or used."""

    summary = "The specified path can't be accessed!"


class CommandError(PkgCacheError):
    """Raised for an unknown or malformed command line."""

    summary = "Invalid Command!"


class ReadFailure(PkgCacheError):
    """Raised when a remote file or page cannot be retrieved.

    ``status`` is the HTTP status code when the server answered with an
    error, ``None`` for transport failures (refused, timed out, cut short).
    """

    summary = "File Download Failed!"

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class WriteFailure(PkgCacheError):
    """Raised when writing a local file fails part-way."""

    summary = "File Write Failed!"


class PackageInfoError(PkgCacheError):
    """Raised when the local package enumeration tool cannot be run."""

    summary = "Can't fetch 'pkg info' results!  Workaround: Use the ADD command!"


class ResourceExhaustion(PkgCacheError):
    """Raised when the package index cannot grow any further."""

    summary = "Out of memory!"


class RepositoryUrlMissing(PkgCacheError):
    """Raised when a download is requested from a list without a URL."""

    summary = "The repository URL is missing from the package list!"


class IncompletePage(PkgCacheError):
    """Raised when a directory listing ends before its closing ``</html>``.

    Retryable: calling the same mirror step again may succeed.
    """

    summary = "A repository page didn't load completely!"
    retryable = True

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"{url} didn't load completely.")


class ArchiveError(PkgCacheError):
    """Raised when a downloaded package archive cannot be decoded."""

    summary = "A downloaded package archive can't be read!"

    def __init__(self, path, reason: str):
        self.path = path
        super().__init__(f"{path}: {reason}")

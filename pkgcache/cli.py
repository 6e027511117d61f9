"""
Command-line interface for pkgcache.

Usage: pkgcache [--timeout SEC] <command> [package-list-filename]
"""

import argparse
import subprocess
import sys
from pathlib import Path
from typing import Callable, TextIO

import urllib3

from pkgcache import __version__
from pkgcache.config import DEFAULT_LIST_FILENAME, PKG_INFO_COMMAND, resolve_timeout
from pkgcache.core.crawler import Crawler
from pkgcache.core.index import PackageIndex
from pkgcache.errors import AccessDenied, IncompletePage, PackageInfoError, PkgCacheError
from pkgcache.session import HttpFetcher
from pkgcache.utils.log import log, setup_logging

COMMANDS = ("add", "create", "download", "help")


def resolve_command(word: str) -> str:
    """Accept any case-insensitive prefix of a command: ``d``, ``DOWN``…"""
    lowered = word.lower()
    if lowered:
        for command in COMMANDS:
            if command.startswith(lowered):
                return command
    raise argparse.ArgumentTypeError(
        f"invalid command {word!r} (choose from {', '.join(COMMANDS)})"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pkgcache",
        description="FreeBSD 'pkg' cache – mirrors the packages you use, and "
                    "their dependencies, for easy offline installation.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Commands (the first letter is enough):\n"
            "  add      : Interactively add packages to the package list.\n"
            "  create   : Create the package list using 'pkg info'.\n"
            "  download : Download relevant packages via Internet.\n"
            "  help     : Display this command syntax page.\n"
            "\n"
            "The package list's first line must hold the URL of a FreeBSD\n"
            "package repository before 'download' can be used.\n"
        ),
    )
    parser.add_argument(
        "command", type=resolve_command,
        help="add, create, download or help",
    )
    parser.add_argument(
        "path", nargs="?", default="",
        help=f"Packages directory or package list file "
             f"(default: ./{DEFAULT_LIST_FILENAME})",
    )
    parser.add_argument(
        "-t", "--timeout", type=int, default=None, metavar="SEC",
        help="HTTP fetch timeout in seconds (default: $HTTP_TIMEOUT or 180)",
    )
    parser.add_argument(
        "--no-verify-ssl", dest="verify_ssl", action="store_false", default=True,
        help="Disable TLS certificate verification",
    )
    parser.add_argument(
        "--no-progress", dest="progress", action="store_false", default=True,
        help="Do not show the progress bar",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Enable verbose debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Write detailed logs to this file (always at DEBUG level)",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    return parser


def resolve_paths(raw: str, command: str) -> tuple[Path, Path]:
    """
    Return ``(cache_dir, list_file)`` for the optional *raw* path argument.

    A directory holds both the packages and ``.pkgcachelist``; an existing
    file is the list itself, with the packages beside it.  A path that does
    not exist yet names a new list, except for ``download`` which needs
    something to work from.
    """
    if not raw:
        cache_dir = Path.cwd()
        return cache_dir, cache_dir / DEFAULT_LIST_FILENAME

    path = Path(raw)
    if path.is_dir():
        return path, path / DEFAULT_LIST_FILENAME
    if path.exists():
        return path.parent, path
    if command == "download":
        raise AccessDenied(f"{path} does not exist")
    return path.parent, path


def add_interactive(index: PackageIndex, stream: TextIO | None = None) -> int:
    """Add names typed one per line until an empty line or end of input."""
    stream = stream if stream is not None else sys.stdin
    print("\nEnter package names, one per line, an empty line to quit!")
    count = 0
    for line in stream:
        line = line.rstrip("\r\n")
        if not line:
            break
        index.add(line)
        count += 1
    return count


def create_from_pkg_info(index: PackageIndex, runner: Callable = subprocess.run) -> int:
    """Add every package reported by ``pkg info`` on this machine."""
    try:
        result = runner(PKG_INFO_COMMAND, capture_output=True, text=True, check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise PackageInfoError(f"{' '.join(PKG_INFO_COMMAND)} failed: {exc}") from exc

    lines = result.stdout.splitlines()
    for line in lines:
        index.add(line)
    log.info("'pkg info' listed %d package(s)", len(lines))
    return len(lines)


def prompt_retry(exc: IncompletePage, timeout: int, stream: TextIO | None = None) -> bool:
    """Ask whether to restart after an incomplete page; ``[CR]`` means yes."""
    stream = stream if stream is not None else sys.stdin
    print(f"HTTP Fetch Timeout: {timeout} sec., Retry? ([CR]=Yes) ", end="", flush=True)
    answer = stream.readline()
    if not answer:
        return False
    answer = answer.strip()
    return not answer or answer[0] in "yY"


def run(args: argparse.Namespace) -> PackageIndex:
    """Execute one command against the package list; raises on failure."""
    cache_dir, list_file = resolve_paths(args.path, args.command)
    log.info("Package List: %s", list_file)

    index = PackageIndex()
    index.load(list_file)

    if args.command == "add":
        add_interactive(index)
    elif args.command == "create":
        create_from_pkg_info(index)
    elif args.command == "download":
        timeout = resolve_timeout(args.timeout)
        log.debug("HTTP timeout: %d s", timeout)
        fetcher = HttpFetcher(timeout=timeout, verify_ssl=args.verify_ssl)
        crawler = Crawler(index, cache_dir, fetcher=fetcher, progress=args.progress)
        try:
            crawler.run(confirm_retry=lambda exc: prompt_retry(exc, timeout))
        finally:
            fetcher.close()

    index.save(list_file)
    return index


def _plural(n: int) -> str:
    return "s" if n > 1 else ""


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(debug=args.debug, log_file=args.log_file)

    if args.command == "help":
        parser.print_help()
        return 0

    if not args.verify_ssl:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        log.warning("TLS certificate verification is DISABLED (--no-verify-ssl)")

    log.info("pkgcache v%s", __version__)
    try:
        index = run(args)
    except PkgCacheError as exc:
        log.error("ERROR: %s", exc.summary)
        log.error("  %s", exc)
        return 1

    new, existing = index.stat_new(), index.stat_existing()
    log.info("Stats: %d new package%s added, %d existing package%s revisited.",
             new, _plural(new), existing, _plural(existing))
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Logging for pkgcache.

The console handler is a ``colorlog`` handler: the level name is
coloured, and the ``[DIR]``/``[GET]``/``[DEPS]``… tags the crawler puts at
the start of its messages get a colour of their own.  ``--log-file``
adds a plain-text handler that always records DEBUG.
"""

import logging
import re
from pathlib import Path

import colorlog

log = logging.getLogger("pkgcache")

_CONSOLE_FORMAT = "%(log_color)s%(asctime)s %(levelname)-7s%(reset)s %(message)s"
_CONSOLE_DATEFMT = "%H:%M:%S"
_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_LEVEL_COLOURS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

# Crawler message tags and their ANSI colour.
_TAG_COLOURS = {
    "DIR": "\033[34m",
    "GET": "\033[37m",
    "SAVE": "\033[1;32m",
    "SKIP": "\033[90m",
    "DEPS": "\033[1;35m",
    "RETRY": "\033[36m",
    "WARN": "\033[33m",
    "ERR": "\033[1;31m",
}
_TAG_RE = re.compile(r"\[(%s)\]" % "|".join(_TAG_COLOURS))
_RESET = "\033[0m"


def _colour_tag(m: re.Match) -> str:
    return f"{_TAG_COLOURS[m.group(1)]}{m.group(0)}{_RESET}"


class _TaggedFormatter(colorlog.ColoredFormatter):
    """ColoredFormatter that also colours the crawler's ``[TAG]`` markers."""

    def format(self, record: logging.LogRecord) -> str:
        return _TAG_RE.sub(_colour_tag, super().format(record))


def _console_handler(level: int) -> logging.Handler:
    handler = colorlog.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(_TaggedFormatter(
        _CONSOLE_FORMAT, datefmt=_CONSOLE_DATEFMT, log_colors=_LEVEL_COLOURS,
    ))
    return handler


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(debug: bool = False, log_file: str | None = None) -> None:
    """
    (Re)configure the ``pkgcache`` logger.

    The console shows INFO and above, or DEBUG when *debug* is set.  When
    *log_file* is given every record down to DEBUG is also appended
    there.  Calling this again replaces the previous handlers.
    """
    console_level = logging.DEBUG if debug else logging.INFO
    log.handlers.clear()
    log.propagate = False
    log.addHandler(_console_handler(console_level))
    log.setLevel(console_level)

    if log_file:
        path = Path(log_file)
        log.addHandler(_file_handler(path))
        log.setLevel(logging.DEBUG)
        log.debug("Logging to file: %s", path.resolve())

    # urllib3 reports retries at DEBUG.
    logging.getLogger("urllib3").setLevel(logging.DEBUG if debug else logging.WARNING)

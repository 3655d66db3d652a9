"""
Logging configuration — set up once by the CLI entrypoint.

Every module does ``logger = logging.getLogger(__name__)`` and inherits
this config. Records go to stderr (and optionally a file), never stdout,
so JSON and transcript output stay machine-readable.

Console level, highest precedence first:
    --debug / --verbose / --quiet  >  DOCKSHIM_LOG_LEVEL  >  WARNING

DOCKSHIM_LOG_FILE adds a file handler; DOCKSHIM_LOG_FILE_LEVEL sets its
level independently of the console.
"""

from __future__ import annotations

import logging
import sys

# (highest level the format applies to, format, date format)
# The console gets more context the chattier it is.
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(message)s", None),
)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_PACKAGE_LOGGER = "dockshim"


def _console_format(level: int) -> tuple[str, str | None]:
    for ceiling, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= ceiling:
            return fmt, datefmt
    return _CONSOLE_FORMATS[-1][1], None


def _configured(handler: logging.Handler, level: int, fmt: str, datefmt: str | None) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root handlers with a stderr handler (and maybe a file).

    Args:
        level: Console level name, e.g. ``"INFO"``.
        log_file: Optional path to a log file.
        log_file_level: File level name; defaults to *level*.
    """
    console_level = parse_level(level)
    handlers = [
        _configured(logging.StreamHandler(sys.stderr), console_level, *_console_format(console_level)),
    ]

    lowest = console_level
    if log_file:
        file_level = parse_level(log_file_level or level)
        handlers.append(
            _configured(logging.FileHandler(log_file, encoding="utf-8"), file_level, _FILE_FORMAT, _FILE_DATEFMT),
        )
        lowest = min(lowest, file_level)

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(lowest)
    logging.getLogger(_PACKAGE_LOGGER).setLevel(lowest)

    # A closed stderr (piped into `head`) must not print tracebacks.
    logging.raiseExceptions = False


def parse_level(level: str | None) -> int:
    """Level name → numeric constant; blank or unknown names give WARNING."""
    numeric = getattr(logging, (level or "").upper(), None) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING

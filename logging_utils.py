"""Logging setup shared by the folio command.

Records go to stderr. stdout carries nothing but the "<file>\\t<marker>"
result lines, so it can be piped straight into another tool.
"""

from __future__ import annotations

import argparse
import logging
import sys

LOG_LEVELS = {
    name: getattr(logging, name.upper())
    for name in ("debug", "info", "warning", "error", "critical")
}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Third-party loggers that are noisy below INFO
_CHATTY_LOGGERS = ("PIL",)


def add_logging_args(parser: argparse.ArgumentParser) -> None:
    """Add --log-level, -v and -q to a parser."""
    group = parser.add_argument_group("logging")
    group.add_argument(
        "--log-level",
        choices=tuple(LOG_LEVELS),
        help="Explicit log level; overrides -v/-q",
    )
    group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log every decode attempt and region search",
    )
    group.add_argument(
        "-q", "--quiet",
        action="count",
        default=0,
        help="Warnings only and no progress bar (-qq: errors only)",
    )


def resolve_log_level(
    log_level: str | None = None,
    verbose: int = 0,
    quiet: int = 0,
) -> int:
    """Numeric level from --log-level, else from the -v/-q balance."""
    if log_level:
        return LOG_LEVELS[log_level.lower()]
    ladder = (logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG)
    index = 2 + verbose - quiet
    return ladder[min(max(index, 0), len(ladder) - 1)]


def progress_enabled(args: argparse.Namespace) -> bool:
    """Whether a progress bar belongs on stderr for this run."""
    return not (getattr(args, "no_progress", False) or args.quiet > 0)


def configure_logging(
    log_level: str | None = None,
    verbose: int = 0,
    quiet: int = 0,
) -> int:
    """Point the root logger at stderr and return the active level.

    When handlers already exist (embedding application, pytest) only their
    levels are changed.
    """
    level = resolve_log_level(log_level=log_level, verbose=verbose, quiet=quiet)
    root_logger = logging.getLogger()

    if root_logger.handlers:
        root_logger.setLevel(level)
        for handler in root_logger.handlers:
            handler.setLevel(level)
    else:
        logging.basicConfig(
            level=level,
            format=LOG_FORMAT,
            datefmt="%H:%M:%S",
            stream=sys.stderr,
        )

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
    return level

#!/usr/bin/env python3
"""
CLI for the exam-sheet marker reader.

Usage:
    folio                        # Decode every photo in ./omr_samples
    folio <dir>                  # Decode every .jpg/.jpeg/.png in <dir>
    folio <dir> --expect EX-12   # Also warn about sheets carrying another ID
    folio <dir> -v               # Log every decode attempt

Prints one "<file name>\\t<marker or ->" line per photo on stdout.
"""

import argparse
import logging
import sys

from logging_utils import configure_logging, add_logging_args
from cli.read import add_read_arguments, cmd_read

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="folio",
        description="Folio marker reader - decode the QR marker on photographed exam sheets",
    )
    add_logging_args(parser)
    add_read_arguments(parser)
    parser.set_defaults(_cmd=cmd_read)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.verbose, args.quiet)

    try:
        return args._cmd(args)
    except Exception:
        logger.exception("Unhandled error")
        return 1


if __name__ == "__main__":
    sys.exit(main())

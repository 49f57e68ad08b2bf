#!/usr/bin/env python3
"""
lsprename - a language server for renaming symbols.
"""

import argparse
import asyncio
import sys

from .handler import RENAME_YIELD_EVERY
from .server import run_server
from .util import LOG_LEVELS, log, set_log_level, set_max_log_length


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='lsprename',
        description="Serve textDocument/rename over stdio.",
    )
    parser.add_argument(
        '--preset',
        type=str,
        default='default',
        metavar='NAME|PATH',
        help='Preset providing the renamers (default: default).',
    )
    parser.add_argument(
        '--yield-every',
        type=int,
        default=RENAME_YIELD_EVERY,
        metavar='N',
        help=f'Yield to other requests every N edits (default: {RENAME_YIELD_EVERY}).',
    )
    parser.add_argument(
        '--log-level',
        type=str,
        choices=list(LOG_LEVELS),
        default='info',
        help='Set logging verbosity (default: info).',
    )
    parser.add_argument(
        '--max-log-length',
        type=int,
        default=4000,
        metavar='N',
        help='Maximum log message length; 0 for unlimited (default: 4000).',
    )
    return parser


def main() -> None:
    parser = make_parser()
    opts = parser.parse_args()

    if opts.yield_every < 1:
        parser.error("--yield-every must be positive")

    set_log_level(LOG_LEVELS[opts.log_level])
    set_max_log_length(opts.max_log_length)

    try:
        asyncio.run(run_server(opts))
    except KeyboardInterrupt:
        log("\nShutting down...")
    except Exception as e:
        log(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

"""
Entry point for the minidump_symbolizer component.
"""

import argparse
import asyncio
import logging
import sys

from .application.exceptions import SymbolizerError
from .infrastructure.containers import Container

logger = logging.getLogger(__name__)


def setup_logging(level: str):
    """Applies basic logging configuration."""
    logging.basicConfig(level=level)


def cli_overrides(args: argparse.Namespace) -> dict:
    """Maps command line flags onto symbolizer setting names."""
    return {
        "work_dir": args.work_dir,
        "mirrors": args.mirrors,
        "concurrent_downloads": args.concurrency,
        "force": args.force or None,
        "quiet": args.quiet or None,
    }


async def run_application(args: argparse.Namespace):
    """Wires and runs the application using the DI container."""

    container = Container()
    container.cli_args.from_dict(cli_overrides(args))
    level = "WARNING" if args.quiet else container.config().logging.level
    setup_logging(level=level)

    try:
        service = container.symbolizer_service()
        trace = await service.run(args.dump_file)
    except SymbolizerError as e:
        logger.error(f"An application error occurred: {e}")
        sys.exit(1)
    finally:
        await container.http_client().aclose()

    sys.stdout.write(trace)


def build_parser() -> argparse.ArgumentParser:
    """Builds the command line parser."""
    parser = argparse.ArgumentParser(
        description="Extract a symbolized stack trace from a crash dump"
    )

    parser.add_argument("dump_file", help="Path to the crash dump file")

    parser.add_argument(
        "--mirror",
        dest="mirrors",
        action="append",
        help="Symbol server base URL, in priority order (repeatable). "
        "Replaces the configured mirrors.",
    )

    parser.add_argument(
        "--work-dir",
        help="Directory for carved dumps and symbol caches.",
    )

    parser.add_argument(
        "--concurrency",
        type=int,
        help="Maximum number of simultaneous symbol downloads.",
    )

    parser.add_argument(
        "--force",
        action="store_true",
        help="Re-download symbols even if they are already cached.",
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors, and hide progress bars.",
    )

    return parser


def main():
    cli_args = build_parser().parse_args()

    asyncio.run(run_application(cli_args))


if __name__ == "__main__":
    main()

"""Command-line interface for budstandart."""

import argparse
import logging
import sys

from dotenv import load_dotenv

# Load .env file from the working directory
load_dotenv()


def _configure_logging(args) -> None:
    # stdout is reserved for JSON results
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv=None):
    """Main CLI entry point."""
    from budstandart.cli import portal, store

    modules = [portal, store]

    from budstandart import __version__

    parser = argparse.ArgumentParser(
        prog="budstandart",
        description="Search and download documents from the BUDSTANDART portal",
    )
    parser.add_argument("--version", action="version", version=f"budstandart {__version__}")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Warnings and errors only")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for mod in modules:
        mod.register(subparsers)

    args = parser.parse_args(argv)
    _configure_logging(args)

    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()
        sys.exit(1)

"""
Command-line entry point: load the config, run the shelf, publish.

Usage:
    bookshelf out                          Build into out/, write out/manifest.json
    bookshelf out -w /tmp/repos            Clone repositories somewhere else
    bookshelf -c shelf.yaml -t templates   Render templates/ into the destination

BOOKSHELF_LOG sets the log level (debug, info, warning, error).
"""

import argparse
import logging
import os
import sys

from shelflib.config import load_config
from shelflib.errors import ShelfError
from shelflib.publish import publish
from shelflib.shelf import run

logger = logging.getLogger("shelflib")

LOG_ENV = "BOOKSHELF_LOG"
DEFAULT_WORKING_DIR = "./repos"


def setup_logging(env=None):
    env = os.environ if env is None else env
    name = env.get(LOG_ENV, "info").strip().upper() or "INFO"
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return level


def build_parser():
    parser = argparse.ArgumentParser(
        prog="bookshelf",
        description="Build EPUBs from a collection of book repositories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s out                      Build into out/, write out/manifest.json
  %(prog)s out -w /tmp/repos        Clone book repositories to /tmp/repos
  %(prog)s out -t site-templates    Render site-templates/ against the manifest
        """,
    )
    parser.add_argument(
        "destination",
        nargs="?",
        help="Destination directory for epubs and the manifest",
    )
    parser.add_argument(
        "--config", "-c",
        help="Bookshelf configuration file (default: ./bookshelf.yaml if present)",
    )
    parser.add_argument(
        "--working_dir", "-w",
        help=f"Where the book repositories are cloned (default: {DEFAULT_WORKING_DIR})",
    )
    parser.add_argument(
        "--destination_dir", "-d",
        help="Override the destination directory",
    )
    parser.add_argument(
        "--templates_dir", "-t",
        help="Render every file in this directory instead of writing manifest.json",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        default=None,
        help="Run epubcheck on each generated epub",
    )
    return parser


def main(argv=None):
    setup_logging()
    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            args.config,
            destination_dir=args.destination_dir or args.destination,
            working_dir=args.working_dir,
            templates_dir=args.templates_dir,
            validate=args.validate,
        )
        config.summary()
        manifest = run(config)
        publish(manifest, config)
    except ShelfError as e:
        logger.error("%s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

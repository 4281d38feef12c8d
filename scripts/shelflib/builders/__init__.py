import os

from shelflib.book import load_book
from shelflib.builders.base import BuildResult
from shelflib.builders.epub import EpubBuilder

BUILDERS = {
    "epub": EpubBuilder,
}

DEFAULT_FORMAT = "epub"


def build_book(source_dir, dest_dir, validate=False, fmt=DEFAULT_FORMAT):
    """Load the book at source_dir and render it under dest_dir. Raises BuildError."""
    book = load_book(os.fspath(source_dir))
    builder = BUILDERS[fmt](book, dest_dir, validate=validate)
    return builder.build()


__all__ = ["BUILDERS", "BuildResult", "EpubBuilder", "build_book"]

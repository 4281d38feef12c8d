"""
Book project loading.

A book is an mdBook-style source tree:

    book.toml         [book] title / authors / language / src
    src/SUMMARY.md    chapter order, as markdown links
    src/*.md          chapters

Builders only need the resolved metadata and the ordered chapter list,
both provided by load_book().
"""

import glob
import os
import re
import tomllib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from shelflib.errors import BuildError

BOOK_FILE = "book.toml"
SUMMARY_FILE = "SUMMARY.md"

# [Chapter name](path/to/chapter.md)
SUMMARY_LINK = re.compile(r"\[[^\]]*\]\(([^)]*)\)")


@dataclass(frozen=True)
class BookProject:
    root: str
    src_dir: str
    title: str
    authors: Tuple[str, ...]
    language: str
    chapters: List[str]
    epub: Dict[str, Any] = field(default_factory=dict)


def natural_sort_key(s):
    """Sort strings with embedded numbers naturally (2.md before 10.md)."""
    return [
        int(text) if text.isdigit() else text.lower()
        for text in re.split(r"(\d+)", s)
    ]


def read_book_toml(root):
    """Parse book.toml. Returns (the [book] table, the [output.epub] table)."""
    path = os.path.join(root, BOOK_FILE)
    if not os.path.isfile(path):
        raise BuildError(f"No {BOOK_FILE} found in {root}", source=root)
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (tomllib.TOMLDecodeError, UnicodeDecodeError, OSError) as e:
        raise BuildError(f"Unable to read {path}: {e}", source=root) from e

    book = data.get("book", {})
    output = data.get("output", {})
    epub = output.get("epub", {}) if isinstance(output, dict) else None
    if not isinstance(book, dict) or not isinstance(epub, dict):
        raise BuildError(f"[book] and [output.epub] in {path} must be tables", source=root)
    return book, epub


def summary_chapters(src_dir):
    """
    Chapter files in SUMMARY.md link order.

    Draft chapters (empty link targets) and links to missing files are
    skipped. Returns None if there is no SUMMARY.md.
    """
    summary = os.path.join(src_dir, SUMMARY_FILE)
    if not os.path.isfile(summary):
        return None

    try:
        with open(summary, encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise BuildError(f"Unable to read {summary}: {e}", source=src_dir) from e

    files = []
    for target in SUMMARY_LINK.findall(text):
        target = target.strip().split("#", 1)[0]
        if not target or not target.endswith(".md"):
            continue
        path = os.path.normpath(os.path.join(src_dir, target))
        if os.path.isfile(path) and path not in files:
            files.append(path)
    return files


def assemble_chapters(src_dir):
    """
    Chapter files in reading order.

    Falls back to every *.md below src_dir (except SUMMARY.md), naturally
    sorted, if no SUMMARY.md exists.
    """
    files = summary_chapters(src_dir)
    if files is None:
        files = [
            path
            for path in glob.glob(os.path.join(src_dir, "**", "*.md"), recursive=True)
            if os.path.basename(path) != SUMMARY_FILE
        ]
        files.sort(key=lambda p: natural_sort_key(os.path.relpath(p, src_dir)))
    return files


def load_book(root):
    """Load the book rooted at root. Raises BuildError if there is none."""
    if not os.path.isdir(root):
        raise BuildError(f"Book directory {root} does not exist", source=root)

    meta, epub = read_book_toml(root)
    src_dir = os.path.join(root, str(meta.get("src", "src")))
    if not os.path.isdir(src_dir):
        raise BuildError(f"Book source directory {src_dir} does not exist", source=root)

    chapters = assemble_chapters(src_dir)
    if not chapters:
        raise BuildError(f"No chapters found in {src_dir}", source=root)

    authors = meta.get("authors") or []
    if isinstance(authors, str):
        authors = [authors]

    return BookProject(
        root=root,
        src_dir=src_dir,
        title=str(meta.get("title") or ""),
        authors=tuple(str(a) for a in authors),
        language=str(meta.get("language") or "en"),
        chapters=chapters,
        epub=epub,
    )

"""
Base builder class for book artifacts.

Subclasses implement `render()` and set `format_name` / `extension`.
Shared logic (pandoc invocation, logging, artifact naming and read-back)
lives here.
"""

import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass

from shelflib.errors import BuildError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    path: str
    size: int
    title: str


def artifact_stem(title):
    """Filename stem for a book title; path separators are not allowed."""
    stem = title.replace("/", "-").replace("\\", "-").strip().strip(".")
    return stem or "book"


class BaseBuilder(ABC):
    """
    Abstract base for artifact builders.

    Subclasses must define:
        format_name:  str    — human-readable name ("EPUB")
        extension:    str    — output file extension (".epub")
        render():     method — produce self.output_file
    """

    format_name = None  # Override in subclass
    extension = None    # Override in subclass

    def __init__(self, book, output_dir, pandoc="pandoc", **kwargs):
        self.book = book
        self.output_dir = str(output_dir)
        self.pandoc = pandoc
        self.kwargs = kwargs

    # ── Output path ────────────────────────────────────────

    @property
    def output_file(self):
        """Named after the book's own title, as the toolchain names it."""
        return os.path.join(self.output_dir, f"{artifact_stem(self.book.title)}{self.extension}")

    # ── Artifact resolution ────────────────────────────────

    def resolve(self, filename):
        """Resolve a file named in book.toml, relative to the book root."""
        if not filename:
            return None
        path = os.path.join(self.book.root, filename)
        if os.path.exists(path):
            return os.path.abspath(path)
        logger.warning("%s: '%s' not found in %s", self.book.title, filename, self.book.root)
        return None

    # ── Pandoc invocation ──────────────────────────────────

    def pandoc_cmd(self, extra_args=None):
        """Standard pandoc arguments plus any extras, without input files."""
        cmd = [self.pandoc]
        for key, value in [("title", self.book.title), ("lang", self.book.language)]:
            if value:
                cmd.extend(["--metadata", f"{key}={value}"])
        for author in self.book.authors:
            cmd.extend(["--metadata", f"author={author}"])
        cmd.extend([
            "--from", "markdown+smart",
            "--resource-path", self.book.src_dir,
        ])

        if extra_args:
            cmd.extend(extra_args)
        return cmd

    def exec_cmd(self, cmd, label="Command"):
        """Execute a command. Raises BuildError on failure."""
        logger.debug("$ %s", " ".join(cmd[:12]) + (" ..." if len(cmd) > 12 else ""))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise BuildError(f"{cmd[0]} not found", source=self.book.root) from e

        if result.returncode != 0:
            tail = result.stderr.strip().splitlines()[:20]
            raise BuildError(
                f"{label} failed (exit {result.returncode})"
                + ("".join(f"\n    {line}" for line in tail)),
                source=self.book.root,
            )

    def check_tool(self, name):
        """Check that a required external tool is on PATH."""
        if not shutil.which(name):
            raise BuildError(f"{name} not found on PATH", source=self.book.root)

    # ── Build ──────────────────────────────────────────────

    def build(self):
        """Render the artifact and read back its size. Raises BuildError."""
        logger.info("Building %s: %s", self.format_name, self.book.title or self.book.root)
        os.makedirs(self.output_dir, exist_ok=True)

        self.render()

        output = self.output_file
        if not os.path.isfile(output):
            raise BuildError(
                f"{self.format_name} generation reported success but {output} is missing",
                source=self.book.root,
            )
        size = os.path.getsize(output)
        logger.info("Generated %s into %s (%d bytes)", self.format_name, output, size)
        return BuildResult(path=output, size=size, title=self.book.title)

    @abstractmethod
    def render(self):
        """Produce self.output_file. Raises BuildError on failure."""
        ...

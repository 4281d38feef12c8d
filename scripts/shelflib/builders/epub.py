"""
EPUB builder.

Pipeline: pandoc → epub → epubcheck validation (optional, report only).
"""

import logging

from shelflib.builders.base import BaseBuilder
from shelflib.epubcheck import validate_epub

logger = logging.getLogger(__name__)


class EpubBuilder(BaseBuilder):
    format_name = "EPUB"
    extension = ".epub"

    def render(self):
        epub = self.book.epub
        self.check_tool(self.pandoc)

        extra = [
            "--epub-title-page=false",
            "--toc",
            "--toc-depth", str(epub.get("toc-depth", 1)),
            "-o", self.output_file,
        ]

        # Additional CSS, as listed in [output.epub]
        stylesheets = epub.get("additional-css") or []
        if isinstance(stylesheets, str):
            stylesheets = [stylesheets]
        for name in stylesheets:
            css_path = self.resolve(name)
            if css_path:
                extra.extend(["--css", css_path])
                logger.debug("  CSS:   %s", css_path)

        cover_path = self.resolve(epub.get("cover-image"))
        if cover_path:
            extra.extend(["--epub-cover-image", cover_path])
            logger.debug("  Cover: %s", cover_path)

        cmd = self.pandoc_cmd(extra)
        cmd.extend(self.book.chapters)

        logger.debug("  Input: %d files", len(self.book.chapters))
        self.exec_cmd(cmd, "EPUB generation")

    def build(self):
        result = super().build()

        if self.kwargs.get("validate", False):
            valid = validate_epub(result.path)
            if valid is False:
                logger.warning("%s did not pass epubcheck", result.path)

        return result

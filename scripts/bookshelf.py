#!/usr/bin/env python3
"""
Build every book listed in bookshelf.yaml and publish the manifest.

Usage:
    python bookshelf.py out                      Build into out/
    python bookshelf.py out -w repos -t site     Render site/ templates
    BOOKSHELF_LOG=debug python bookshelf.py out  Show git and pandoc commands

Requires: git, pandoc, PyYAML, Jinja2
Optional: java + epubcheck (--validate)
"""

import os
import sys
import traceback

# Ensure shelflib is importable from the scripts/ directory
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from shelflib.cli import main


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        log_path = "bookshelf_error.log"
        with open(log_path, "w") as f:
            traceback.print_exc(file=f)
        print(f"\nUnexpected error: {e}", file=sys.stderr)
        print(f"Full traceback written to {log_path}", file=sys.stderr)
        sys.exit(1)

"""
Error taxonomy for the bookshelf pipeline.

Sync and publish failures abort the run. Build failures are recovered
per entry by the aggregator (see shelflib.shelf) and never escape it.
"""


class ShelfError(Exception):
    """Base for every failure the CLI reports without a traceback."""


class ConfigError(ShelfError):
    """Raised when bookshelf.yaml is missing, invalid, or incomplete."""


class SyncError(ShelfError):
    """A repository could not be cloned, fetched, or trusted."""

    def __init__(self, message, repo_url=None, path=None):
        super().__init__(message)
        self.repo_url = repo_url
        self.path = path


class BuildError(ShelfError):
    """A book failed to load or render."""

    def __init__(self, message, source=None):
        super().__init__(message)
        self.source = source


class PublishError(ShelfError):
    """The manifest could not be written or a template failed to render."""

    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path

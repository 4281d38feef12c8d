"""
Manifest aggregation: sync and build every configured book.

Per entry:

    PENDING → SYNCED → BUILT → RECORDED
    PENDING → SYNC_FAILED     SyncError propagates; the whole run aborts
    SYNCED  → BUILD_FAILED    BuildError is logged; the entry is dropped

Entries are processed one at a time, in configuration order, and the
manifest preserves that order.
"""

import logging
import os

from shelflib.builders import build_book
from shelflib.errors import BuildError
from shelflib.manifest import Manifest, ManifestCollection, ManifestEntry, rfc3339_now
from shelflib.repo import RepoSync

logger = logging.getLogger(__name__)


def resolve_title(repo_config, built_title):
    """Configured title, else the book's own title, else ""."""
    return repo_config.title or built_title or ""


def artifact_dir(config, repo_config):
    dest = os.path.join(config.destination_dir, repo_config.checkout_name)
    if repo_config.folder:
        dest = os.path.join(dest, repo_config.folder)
    return dest


class ShelfRun:
    """
    One pass over a ShelfConfig.

    `syncer(repo_url, working_dir)` must return a SyncResult and raise
    SyncError; `builder(source_dir, dest_dir, validate=...)` must return a
    BuildResult and raise BuildError.
    """

    def __init__(self, config, syncer=None, builder=None, clock=None):
        self.config = config
        self.syncer = syncer or RepoSync().sync
        self.builder = builder or build_book
        self.clock = clock or rfc3339_now
        self.skipped = []

    def process(self, repo_config):
        """Sync and build one entry. Returns a ManifestEntry, or None if the build failed."""
        synced = self.syncer(repo_config.repo_url, self.config.working_dir)

        source = synced.local_path
        if repo_config.folder:
            source = os.path.join(source, repo_config.folder)
        dest = artifact_dir(self.config, repo_config)

        try:
            built = self.builder(source, dest, validate=self.config.validate)
        except BuildError as e:
            logger.warning("Skipping %s: %s", repo_config.repo_url, e)
            self.skipped.append(repo_config)
            return None

        return ManifestEntry(
            title=resolve_title(repo_config, built.title),
            repo_url=repo_config.repo_url,
            url=repo_config.url or "",
            commit_sha=synced.commit_sha,
            last_modified=synced.last_modified,
            epub_size=built.size,
            path=os.fspath(built.path),
        )

    def process_all(self, books):
        entries = []
        for repo_config in books:
            entry = self.process(repo_config)
            if entry is not None:
                entries.append(entry)
        return tuple(entries)

    def run(self):
        config = self.config
        timestamp = self.clock()

        if config.grouped:
            collections = []
            for collection in config.collections:
                logger.info("Collection: %s", collection.title)
                collections.append(
                    ManifestCollection(
                        title=collection.title,
                        entries=self.process_all(collection.books),
                    )
                )
            manifest = Manifest(
                title=config.title, timestamp=timestamp, collections=tuple(collections)
            )
        else:
            manifest = Manifest(
                title=config.title,
                timestamp=timestamp,
                entries=self.process_all(config.books),
            )

        built = len(manifest.all_entries())
        if self.skipped:
            logger.warning(
                "Built %d book(s); skipped %d: %s",
                built,
                len(self.skipped),
                ", ".join(r.repo_url for r in self.skipped),
            )
        else:
            logger.info("Built %d book(s)", built)
        return manifest


def run(config, syncer=None, builder=None, clock=None):
    """Sync and build every configured book. Raises SyncError; never BuildError."""
    return ShelfRun(config, syncer=syncer, builder=builder, clock=clock).run()

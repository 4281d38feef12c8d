"""
The manifest: everything one run produced, with provenance.

Built once by shelflib.shelf.run() and never mutated afterwards.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple


def rfc3339_now():
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


@dataclass(frozen=True)
class ManifestEntry:
    title: str
    repo_url: str
    url: str
    commit_sha: str
    last_modified: str
    epub_size: int
    path: str

    def to_dict(self):
        return {
            "title": self.title,
            "repo_url": self.repo_url,
            "url": self.url,
            "commit_sha": self.commit_sha,
            "last_modified": self.last_modified,
            "epub_size": self.epub_size,
            "path": self.path,
        }


@dataclass(frozen=True)
class ManifestCollection:
    title: str
    entries: Tuple[ManifestEntry, ...] = ()

    def to_dict(self):
        return {
            "title": self.title,
            "entries": [entry.to_dict() for entry in self.entries],
        }


@dataclass(frozen=True)
class Manifest:
    title: str
    timestamp: str
    entries: Tuple[ManifestEntry, ...] = ()
    collections: Optional[Tuple[ManifestCollection, ...]] = None

    @property
    def grouped(self):
        return self.collections is not None

    def all_entries(self):
        if self.grouped:
            return [entry for c in self.collections for entry in c.entries]
        return list(self.entries)

    def to_dict(self):
        """JSON-ready form; holds 'collections' or 'entries', never both."""
        data = {"title": self.title, "timestamp": self.timestamp}
        if self.grouped:
            data["collections"] = [c.to_dict() for c in self.collections]
        else:
            data["entries"] = [entry.to_dict() for entry in self.entries]
        return data

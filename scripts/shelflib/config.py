"""
Bookshelf configuration: load, validate, and provide defaults for bookshelf.yaml.

Values are layered by ConfigBuilder (defaults, then the file, then CLI
overrides) and validated once, producing a frozen ShelfConfig.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

import yaml

from shelflib.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "bookshelf.yaml"

# Fields that must resolve to a value once every layer is applied
REQUIRED_FIELDS = ["destination_dir"]

# Defaults applied if missing
DEFAULTS = {
    "title": "",
    "destination_dir": None,
    "working_dir": "repos",
    "templates_dir": None,
    "validate": False,
}

BOOK_FIELDS = ["title", "folder", "repo_url", "url"]


def _normalize_keys(data, where):
    """Accept kebab-case (canonical) or snake_case keys."""
    if not isinstance(data, dict):
        raise ConfigError(f"{where} must be a mapping, got {type(data).__name__}")
    return {str(key).replace("-", "_"): value for key, value in data.items()}


def checkout_name(repo_url):
    """Last path segment of a repository URL ("book.git" for .../rust-lang/book.git)."""
    return repo_url.rstrip("/").replace("\\", "/").split("/")[-1]


@dataclass(frozen=True)
class BookRepoConfig:
    repo_url: str
    title: Optional[str] = None
    folder: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_dict(cls, data, where="book entry"):
        data = _normalize_keys(data, where)
        unknown = sorted(set(data) - set(BOOK_FIELDS))
        if unknown:
            logger.warning("Ignoring unknown keys in %s: %s", where, ", ".join(unknown))

        repo_url = data.get("repo_url")
        if not repo_url or not isinstance(repo_url, str):
            raise ConfigError(f"{where} is missing required field: repo-url")
        if not checkout_name(repo_url):
            raise ConfigError(f"{where} has a repo-url with no path segment: {repo_url}")

        values = {}
        for key in ["title", "folder", "url"]:
            value = data.get(key)
            values[key] = str(value) if value not in (None, "") else None
        return cls(repo_url=repo_url, **values)

    @property
    def checkout_name(self):
        return checkout_name(self.repo_url)


@dataclass(frozen=True)
class CollectionConfig:
    title: str
    books: Tuple[BookRepoConfig, ...] = ()

    @classmethod
    def from_dict(cls, data, where="collection"):
        data = _normalize_keys(data, where)
        title = data.get("title")
        if not title:
            raise ConfigError(f"{where} is missing required field: title")
        books = _parse_books(data.get("book") or [], f"{where} '{title}'")
        return cls(title=str(title), books=books)


def _parse_books(items, where):
    if not isinstance(items, list):
        raise ConfigError(f"'book' in {where} must be a list")
    return tuple(
        BookRepoConfig.from_dict(item, f"{where} book #{i + 1}")
        for i, item in enumerate(items)
    )


@dataclass(frozen=True)
class ShelfConfig:
    """
    Loaded, validated bookshelf configuration.

    Usage:
        config = ConfigBuilder().load_file("bookshelf.yaml").build()
        config.destination_dir   # "out"
        config.all_books()       # every BookRepoConfig, in order
    """

    destination_dir: str
    title: str = ""
    working_dir: str = DEFAULTS["working_dir"]
    templates_dir: Optional[str] = None
    validate: bool = False
    books: Tuple[BookRepoConfig, ...] = ()
    collections: Optional[Tuple[CollectionConfig, ...]] = None

    @property
    def grouped(self):
        return self.collections is not None

    def all_books(self):
        """Every configured entry, flattened across collections."""
        if self.grouped:
            return [book for collection in self.collections for book in collection.books]
        return list(self.books)

    def summary(self):
        """Log a short config summary."""
        logger.info("Bookshelf:   %s", self.title or "(untitled)")
        logger.info("Destination: %s", self.destination_dir)
        logger.info("Workspace:   %s", self.working_dir)
        if self.templates_dir:
            logger.info("Templates:   %s", self.templates_dir)
        if self.grouped:
            logger.info(
                "Books:       %d in %d collection(s)",
                len(self.all_books()),
                len(self.collections),
            )
        else:
            logger.info("Books:       %d", len(self.books))


class ConfigBuilder:
    """
    Layer defaults, file values and overrides, then validate once.

    Usage:
        builder = ConfigBuilder()
        builder.load_file("bookshelf.yaml")
        builder.override(destination_dir="out", working_dir=None)
        config = builder.build()
    """

    def __init__(self, defaults=None):
        self._values = dict(DEFAULTS)
        if defaults:
            self._values.update(defaults)
        self._books = ()
        self._collections = None

    def load_file(self, path):
        """Load and apply a YAML configuration file."""
        if not os.path.exists(path):
            raise ConfigError(f"No configuration file found at {path}")
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"{path} is not valid YAML: {e}") from e
        except OSError as e:
            raise ConfigError(f"Unable to read {path}: {e}") from e

        if data is None:
            data = {}
        return self.apply(data, where=path)

    def apply(self, data, where="configuration"):
        """Apply a parsed configuration mapping."""
        data = _normalize_keys(data, where)

        if "book" in data and "collections" in data:
            raise ConfigError(f"{where} defines both 'book' and 'collections'; use one")

        known = set(DEFAULTS) | {"book", "collections"}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown keys in %s: %s", where, ", ".join(unknown))

        for key in DEFAULTS:
            if key in data and data[key] is not None:
                self._values[key] = data[key]

        if "collections" in data:
            items = data["collections"] or []
            if not isinstance(items, list):
                raise ConfigError(f"'collections' in {where} must be a list")
            self._collections = tuple(
                CollectionConfig.from_dict(item, f"collection #{i + 1}")
                for i, item in enumerate(items)
            )
            self._books = ()
        elif "book" in data:
            self._books = _parse_books(data["book"] or [], where)
            self._collections = None
        return self

    def override(self, **overrides):
        """Apply overrides field by field; None means 'not given'."""
        for key, value in overrides.items():
            if key not in DEFAULTS:
                raise ConfigError(f"Unknown configuration field: {key}")
            if value is not None:
                self._values[key] = value
        return self

    def build(self):
        missing = [key for key in REQUIRED_FIELDS if not self._values.get(key)]
        if missing:
            names = ", ".join(key.replace("_", "-") for key in missing)
            raise ConfigError(f"Configuration missing required fields: {names}")

        if not isinstance(self._values["validate"], bool):
            raise ConfigError(
                f"validate must be true or false, got {self._values['validate']!r}"
            )

        values = self._values
        return ShelfConfig(
            title=str(values["title"] or ""),
            destination_dir=str(values["destination_dir"]),
            working_dir=str(values["working_dir"] or DEFAULTS["working_dir"]),
            templates_dir=str(values["templates_dir"]) if values["templates_dir"] else None,
            validate=values["validate"],
            books=self._books,
            collections=self._collections,
        )


def load_config(path=None, **overrides):
    """Load bookshelf.yaml (when present) and apply CLI overrides."""
    builder = ConfigBuilder()
    if path is not None:
        builder.load_file(path)
    elif os.path.exists(DEFAULT_CONFIG_FILE):
        builder.load_file(DEFAULT_CONFIG_FILE)
    return builder.override(**overrides).build()

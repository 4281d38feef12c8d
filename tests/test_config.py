from __future__ import annotations

from pathlib import Path

import pytest

from shelflib.config import (
    BookRepoConfig,
    ConfigBuilder,
    checkout_name,
    load_config,
)
from shelflib.errors import ConfigError


FLAT_CONFIG = """\
title: My Shelf
destination-dir: out
working-dir: workspace
book:
  - repo-url: https://github.com/rust-lang/book.git
    url: https://doc.rust-lang.org/book/
  - repo-url: https://example.com/mono.git
    title: Explicit
    folder: guide
"""

GROUPED_CONFIG = """\
title: Grouped
destination_dir: out
collections:
  - title: Rust
    book:
      - repo-url: https://example.com/a.git
      - repo-url: https://example.com/b.git
  - title: Empty
    book: []
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "bookshelf.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_flat_config_loads_books_in_order(tmp_path: Path) -> None:
    config = load_config(_write(tmp_path, FLAT_CONFIG))

    assert config.title == "My Shelf"
    assert config.destination_dir == "out"
    assert config.working_dir == "workspace"
    assert config.templates_dir is None
    assert not config.grouped
    assert [b.repo_url for b in config.all_books()] == [
        "https://github.com/rust-lang/book.git",
        "https://example.com/mono.git",
    ]
    first, second = config.books
    assert first.title is None
    assert first.url == "https://doc.rust-lang.org/book/"
    assert second.title == "Explicit"
    assert second.folder == "guide"


def test_grouped_config_keeps_collection_order(tmp_path: Path) -> None:
    config = load_config(_write(tmp_path, GROUPED_CONFIG))

    assert config.grouped
    assert config.books == ()
    assert [c.title for c in config.collections] == ["Rust", "Empty"]
    assert [b.checkout_name for b in config.all_books()] == ["a.git", "b.git"]


def test_cli_overrides_take_precedence_over_file(tmp_path: Path) -> None:
    config = load_config(
        _write(tmp_path, FLAT_CONFIG),
        destination_dir="elsewhere",
        working_dir=None,
        templates_dir="site",
    )

    assert config.destination_dir == "elsewhere"
    assert config.working_dir == "workspace"
    assert config.templates_dir == "site"


def test_working_dir_defaults_when_unset() -> None:
    config = ConfigBuilder().override(destination_dir="out").build()

    assert config.working_dir == "repos"
    assert config.all_books() == []


def test_missing_destination_is_a_config_error(tmp_path: Path) -> None:
    path = _write(tmp_path, "title: No destination\nbook: []\n")

    with pytest.raises(ConfigError, match="destination-dir"):
        load_config(path)


def test_both_entry_shapes_are_rejected(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "destination-dir: out\nbook: []\ncollections: []\n",
    )

    with pytest.raises(ConfigError, match="both"):
        load_config(path)


def test_book_without_repo_url_is_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path, "destination-dir: out\nbook:\n  - title: Orphan\n")

    with pytest.raises(ConfigError, match="repo-url"):
        load_config(path)


def test_missing_and_malformed_files(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="No configuration file"):
        load_config(tmp_path / "absent.yaml")

    with pytest.raises(ConfigError, match="mapping"):
        load_config(_write(tmp_path, "- just\n- a list\n"))


def test_builder_does_not_share_state_between_instances() -> None:
    first = ConfigBuilder().override(destination_dir="one", title="First").build()
    second = ConfigBuilder().override(destination_dir="two").build()

    assert first.title == "First"
    assert second.title == ""


def test_checkout_name_uses_last_path_segment() -> None:
    assert checkout_name("https://github.com/rust-lang/book.git") == "book.git"
    assert checkout_name("https://example.com/group/project/") == "project"
    assert BookRepoConfig(repo_url="/srv/git/shelf").checkout_name == "shelf"


@pytest.mark.parametrize("value", ['"false"', "1", "yes please"])
def test_non_boolean_validate_is_rejected(tmp_path: Path, value: str) -> None:
    path = _write(tmp_path, f"destination-dir: out\nvalidate: {value}\nbook: []\n")

    with pytest.raises(ConfigError, match="validate"):
        load_config(path)


def test_boolean_validate_is_accepted(tmp_path: Path) -> None:
    path = _write(tmp_path, "destination-dir: out\nvalidate: true\nbook: []\n")

    assert load_config(path).validate is True

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

import shelflib.builders.base as builders_base

HAS_GIT = shutil.which("git") is not None
requires_git = pytest.mark.skipif(not HAS_GIT, reason="git is not installed")

FAKE_EPUB = b"PK\x03\x04 fake epub payload"


def write_book(root: Path, *, title: str | None, chapters: dict[str, str] | None = None) -> Path:
    """Lay out a minimal mdBook-style book under root."""
    chapters = chapters or {"chapter_1.md": "# Chapter 1\n\nHello.\n"}
    src = root / "src"
    src.mkdir(parents=True, exist_ok=True)

    toml = "[book]\n"
    if title is not None:
        toml += f'title = "{title}"\n'
    toml += 'authors = ["Tester"]\nlanguage = "en"\n'
    (root / "book.toml").write_text(toml, encoding="utf-8")

    summary = ["# Summary", ""]
    for name, body in chapters.items():
        (src / name).write_text(body, encoding="utf-8")
        summary.append(f"- [{Path(name).stem}]({name})")
    (src / "SUMMARY.md").write_text("\n".join(summary) + "\n", encoding="utf-8")
    return root


def git(*args: str, cwd: Path) -> str:
    result = subprocess.run(
        ["git", "-c", "user.name=Tester", "-c", "user.email=tester@example.com", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def make_origin(path: Path, *, title: str | None = "Sample Book", with_book: bool = True) -> Path:
    """Create a git repository on branch master with one commit."""
    path.mkdir(parents=True)
    git("init", "-q", cwd=path)
    git("symbolic-ref", "HEAD", "refs/heads/master", cwd=path)
    if with_book:
        write_book(path, title=title)
    else:
        (path / "README.md").write_text("not a book\n", encoding="utf-8")
    git("add", "-A", cwd=path)
    git("commit", "-q", "-m", "initial", cwd=path)
    return path


@pytest.fixture
def fake_pandoc(monkeypatch: pytest.MonkeyPatch) -> list[list[str]]:
    """Stand in for pandoc: write a small file to the -o target. Other commands run for real."""
    calls: list[list[str]] = []
    real_run = subprocess.run
    real_which = shutil.which

    def _run(cmd, *args, **kwargs):
        if cmd and cmd[0] == "pandoc":
            calls.append(list(cmd))
            out = Path(cmd[cmd.index("-o") + 1])
            out.write_bytes(FAKE_EPUB)
            return subprocess.CompletedProcess(cmd, 0, "", "")
        return real_run(cmd, *args, **kwargs)

    def _which(name, *args, **kwargs):
        if name == "pandoc":
            return "/usr/bin/pandoc"
        return real_which(name, *args, **kwargs)

    monkeypatch.setattr(builders_base.subprocess, "run", _run)
    monkeypatch.setattr(builders_base.shutil, "which", _which)
    return calls

"""
Repository synchronization.

Guarantees an up-to-date local checkout of each configured repo-url under
the workspace, and reports the commit it was left at. Everything goes
through the git command-line client.
"""

import logging
import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

from shelflib.config import checkout_name
from shelflib.errors import SyncError

logger = logging.getLogger(__name__)

# Fixed, not configurable: repos whose primary branch has another name
# cannot be fetched.
DEFAULT_BRANCH = "master"


@dataclass(frozen=True)
class SyncResult:
    local_path: Path
    commit_sha: str
    last_modified: str


def checkout_path(repo_url, working_dir):
    """Local checkout location for a repo-url under the workspace."""
    dest = os.path.join(working_dir, checkout_name(repo_url))
    # git tooling on Windows is unreliable with backslash separators
    if sys.platform == "win32":
        dest = dest.replace("\\", "/")
    return Path(dest)


class RepoSync:
    """
    Clone-or-fetch driver around the git CLI.

    Usage:
        result = RepoSync().sync("https://github.com/rust-lang/book.git", "repos")
        result.local_path     # Path("repos/book.git")
        result.commit_sha     # "3f2c..."
    """

    def __init__(self, git="git", branch=DEFAULT_BRANCH):
        self.git = git
        self.branch = branch

    # ── git invocation ─────────────────────────────────────

    def run_git(self, args, cwd=None, repo_url=None):
        """Run a git command and return its stdout. Raises SyncError on failure."""
        cmd = [self.git] + list(args)
        logger.debug("$ %s%s", " ".join(cmd), f"  (in {cwd})" if cwd else "")
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise SyncError(
                f"{self.git} not found on PATH{self._context(repo_url, cwd)}",
                repo_url=repo_url,
                path=cwd,
            ) from e

        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise SyncError(
                f"git {args[0]}{self._context(repo_url, cwd)} failed (exit {result.returncode})"
                + (f": {stderr}" if stderr else ""),
                repo_url=repo_url,
                path=cwd,
            )
        return result.stdout

    @staticmethod
    def _context(repo_url, cwd):
        context = ""
        if repo_url:
            context += f" for {repo_url}"
        if cwd:
            context += f" in {cwd}"
        return context

    def is_checkout(self, path):
        """True when path is the top level of a git working tree."""
        if not os.path.isdir(path):
            return False
        try:
            toplevel = self.run_git(["rev-parse", "--show-toplevel"], cwd=path).strip()
        except SyncError:
            return False
        return os.path.realpath(toplevel) == os.path.realpath(path)

    def remote_url(self, path):
        return self.run_git(["config", "--get", "remote.origin.url"], cwd=path).strip()

    def head(self, path, repo_url=None):
        """(commit sha, ISO-8601 committer date) of HEAD."""
        out = self.run_git(
            ["log", "-1", "--format=%H%n%cI", "HEAD"], cwd=path, repo_url=repo_url
        )
        lines = out.strip().splitlines()
        if len(lines) < 2:
            raise SyncError(
                f"Could not read HEAD of {path}", repo_url=repo_url, path=path
            )
        return lines[0], lines[1]

    # ── Sync ───────────────────────────────────────────────

    def sync(self, repo_url, working_dir):
        dest = checkout_path(repo_url, working_dir)

        if self.is_checkout(dest):
            self.fetch(repo_url, dest)
        elif dest.exists() and any(dest.iterdir()):
            raise SyncError(
                f"{dest} exists but is not a git checkout; remove it to re-clone {repo_url}",
                repo_url=repo_url,
                path=dest,
            )
        else:
            self.clone(repo_url, dest)

        commit_sha, last_modified = self.head(dest, repo_url=repo_url)
        logger.debug("%s is at %s (%s)", dest, commit_sha, last_modified)
        return SyncResult(local_path=dest, commit_sha=commit_sha, last_modified=last_modified)

    def fetch(self, repo_url, dest):
        try:
            remote = self.remote_url(dest)
        except SyncError as e:
            raise SyncError(
                f"{dest} has no 'origin' remote; cannot verify it is {repo_url}",
                repo_url=repo_url,
                path=dest,
            ) from e

        if remote != repo_url:
            raise SyncError(
                f"{dest} is a checkout of {remote}, not {repo_url}; "
                "clear the workspace after changing a repo-url",
                repo_url=repo_url,
                path=dest,
            )

        logger.info("Found %s. Fetching %s", dest, repo_url)
        self.run_git(["fetch", "origin", self.branch], cwd=dest, repo_url=repo_url)
        self.run_git(["reset", "--hard", "FETCH_HEAD"], cwd=dest, repo_url=repo_url)

    def clone(self, repo_url, dest):
        logger.info("Cloning %s to %s", repo_url, dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        self.run_git(["clone", repo_url, str(dest)], repo_url=repo_url)


def sync_repo(repo_url, working_dir, git="git"):
    """Clone or fetch repo_url under working_dir. See RepoSync.sync."""
    return RepoSync(git=git).sync(repo_url, working_dir)

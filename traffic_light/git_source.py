"""
Git adapter that gathers engine inputs from a checkout.

The engine never shells out; pipelines that have a git checkout can use this
to fill `commit_message` and `latest_tag` before calling decide().

Usage:
    from traffic_light.git_source import GitRepository

    repo = GitRepository(".")
    message = repo.head_commit_message()
    latest = repo.latest_version_tag()
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional, Union

from .errors import GitSourceError
from .versioning import select_latest_tag


class GitRepository:
    """
    Reads commit messages and tags with the git CLI.

    Requires `git` to be installed and `path` to be inside a work tree.
    """

    def __init__(self, path: Union[str, Path] = ".", timeout: float = 30):
        """
        Initialize the adapter.

        Args:
            path: Any directory inside the repository
            timeout: Seconds to wait for each git command
        """
        self.path = Path(path)
        self.timeout = timeout
        self._verify_git()

    def _verify_git(self) -> None:
        """Verify git is available and path is inside a work tree."""
        output = self._run_git(["rev-parse", "--is-inside-work-tree"])
        if output.strip() != "true":
            raise GitSourceError(f"{self.path} is not inside a git work tree")

    def _run_git(self, args: list[str]) -> str:
        """
        Run a git command and return its stdout.

        Raises:
            GitSourceError: If git is missing, times out or exits non-zero
        """
        cmd = ["git", *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=self.path,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError:
            raise GitSourceError("git not found on PATH")
        except subprocess.TimeoutExpired:
            raise GitSourceError(f"git {' '.join(args)} timed out after {self.timeout}s")

        if result.returncode != 0:
            raise GitSourceError(f"git {' '.join(args)} failed: {result.stderr.strip()}")

        return result.stdout

    def head_commit_message(self, first_line_only: bool = False) -> str:
        """
        Message of the HEAD commit.

        Args:
            first_line_only: Return only the subject line
        """
        message = self._run_git(["log", "-1", "--pretty=%B"]).strip()
        if first_line_only:
            return message.splitlines()[0] if message else ""
        return message

    def fetch_tags(self, remote: str = "origin") -> None:
        """Fetch tags from the remote so the tag list is complete."""
        self._run_git(["fetch", "--tags", remote])

    def list_version_tags(self, pattern: str = "v*") -> list[str]:
        """List local tags matching a glob pattern, in git's order."""
        output = self._run_git(["tag", "-l", pattern])
        return [line.strip() for line in output.splitlines() if line.strip()]

    def latest_version_tag(self, pattern: str = "v*") -> Optional[str]:
        """Numerically greatest valid version tag, or None."""
        return select_latest_tag(self.list_version_tags(pattern))

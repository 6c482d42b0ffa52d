"""Source accessors: path → post-change file content.

A reader is any callable taking a repo-relative path and returning the
file's text, raising SourceAccessError when it cannot.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Mapping

from diffgate.git.adapter import GitError, show_file

SourceReader = Callable[[str], str]


class SourceAccessError(Exception):
    """Raised when a file's post-change content cannot be read."""


class WorkingTreeReader:
    """Reads files from a checkout rooted at *base_dir*."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir).resolve()

    def __call__(self, path: str) -> str:
        target = (self.base_dir / path).resolve()
        try:
            target.relative_to(self.base_dir)
        except ValueError:
            raise SourceAccessError(f"{path}: outside of {self.base_dir}") from None
        try:
            # A lone \r stays inside its line.
            return target.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceAccessError(f"{path}: {exc}") from exc


class GitRevisionReader:
    """Reads files as they are at *revision* (``git show REV:path``)."""

    def __init__(self, repo_root: Path, revision: str) -> None:
        self.repo_root = Path(repo_root)
        self.revision = revision

    def __call__(self, path: str) -> str:
        try:
            return show_file(self.repo_root, self.revision, path)
        except GitError as exc:
            raise SourceAccessError(f"{path}@{self.revision}: {exc}") from exc


class MappingReader:
    """Serves contents from an in-memory ``{path: text}`` mapping."""

    def __init__(self, files: Mapping[str, str]) -> None:
        self._files: Dict[str, str] = dict(files)

    def __call__(self, path: str) -> str:
        try:
            return self._files[path]
        except KeyError:
            raise SourceAccessError(f"{path}: no such file") from None

"""Git subprocess wrapper — staged diff, range diff, file contents at a revision."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


def _run_git(args: list[str], cwd: Path, timeout: int = 30) -> str:
    """Run a git command and return stdout. Raises GitError on failure.

    Output is decoded as raw UTF-8; a lone ``\\r`` in file content is kept.
    """
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise GitError(f"git {args[0]} failed: {stderr or f'exit status {result.returncode}'}")
    return result.stdout.decode("utf-8", errors="replace")


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out.strip())


def get_staged_diff(repo_root: Path) -> str:
    """Return the unified diff of staged changes (--cached)."""
    return _run_git(
        ["diff", "--cached", "--find-renames", "--no-color", "--no-ext-diff"],
        cwd=repo_root,
    )


def get_range_diff(repo_root: Path, base: str, head: str) -> str:
    """Return the unified diff between two commits (CI mode)."""
    return _run_git(
        ["diff", "--find-renames", "--no-color", "--no-ext-diff", f"{base}..{head}"],
        cwd=repo_root,
    )


def show_file(repo_root: Path, revision: str, path: str) -> str:
    """Return the content of *path* as of *revision* (``git show REV:path``)."""
    return _run_git(["show", f"{revision}:{path}"], cwd=repo_root)

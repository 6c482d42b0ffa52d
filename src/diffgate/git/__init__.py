"""Git interface layer — adapter, diff parsing, models."""

from diffgate.git.adapter import (
    GitError,
    get_range_diff,
    get_repo_root,
    get_staged_diff,
    show_file,
)
from diffgate.git.diff_parser import DiffParseError, DiffParser, parse_diff
from diffgate.git.models import DiffLine, FileDiff, FileStatus, Hunk, LineType

__all__ = [
    "DiffLine",
    "DiffParseError",
    "DiffParser",
    "FileDiff",
    "FileStatus",
    "GitError",
    "Hunk",
    "LineType",
    "get_range_diff",
    "get_repo_root",
    "get_staged_diff",
    "parse_diff",
    "show_file",
]

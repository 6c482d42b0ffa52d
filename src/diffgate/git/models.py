"""Data models for diff parsing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

NULL_PATH = "/dev/null"


class LineType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CONTEXT = "context"


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass(frozen=True, slots=True)
class DiffLine:
    """A single parsed line from a unified diff hunk.

    ``old_line_no`` is set for removed and context lines, ``new_line_no``
    for added and context lines.
    """

    line_type: LineType
    content: str
    old_line_no: Optional[int] = None
    new_line_no: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Hunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: Tuple[DiffLine, ...] = ()

    @property
    def added_count(self) -> int:
        return sum(1 for line in self.lines if line.line_type == LineType.ADDED)

    @property
    def removed_count(self) -> int:
        return sum(1 for line in self.lines if line.line_type == LineType.REMOVED)


@dataclass(frozen=True)
class FileDiff:
    """One file section of a unified diff."""

    old_path: Optional[str]
    new_path: Optional[str]
    status: FileStatus = FileStatus.MODIFIED
    is_binary: bool = False
    hunks: Tuple[Hunk, ...] = ()

    @property
    def path(self) -> str:
        """Post-change path, or the old path for deleted files."""
        if self.new_path and self.new_path != NULL_PATH:
            return self.new_path
        if self.old_path and self.old_path != NULL_PATH:
            return self.old_path
        return "<unknown>"

    @property
    def is_deleted(self) -> bool:
        return self.status == FileStatus.DELETED

    @property
    def total_added(self) -> int:
        return sum(h.added_count for h in self.hunks)

    @property
    def total_removed(self) -> int:
        return sum(h.removed_count for h in self.hunks)

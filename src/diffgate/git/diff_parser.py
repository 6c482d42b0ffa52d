"""Unified diff parser.

Turns ``git diff`` (or plain ``diff -u``) text into immutable
:class:`FileDiff` records. Hunk bodies are consumed strictly by their
declared line counts, so a diff whose headers disagree with its content is
rejected instead of being partially trusted.
"""

from __future__ import annotations

import logging
import re
from typing import Generator, List, Optional, Tuple

from diffgate.git.models import NULL_PATH, DiffLine, FileDiff, FileStatus, Hunk, LineType

logger = logging.getLogger(__name__)

# --- Regex patterns for diff parsing ---

_DIFF_HEADER_RE = re.compile(r"^diff --git a/(.*) b/(.*)$")
_HUNK_HEADER_RE = re.compile(
    r"^@@ -([^\s,]*)(?:,([^\s]*))? \+([^\s,]*)(?:,([^\s]*))? @@"
)
_BINARY_RE = re.compile(r"^Binary files .* and .* differ$")
_GIT_BINARY_PATCH = "GIT binary patch"
_RENAME_FROM_RE = re.compile(r"^rename from (.+)$")
_RENAME_TO_RE = re.compile(r"^rename to (.+)$")
_DELETED_FILE_RE = re.compile(r"^deleted file mode \d+$")
_NEW_FILE_RE = re.compile(r"^new file mode \d+$")


class DiffParseError(Exception):
    """Raised on a malformed diff header or hunk. Fatal for the whole run."""

    def __init__(self, message: str, line_no: Optional[int] = None) -> None:
        self.line_no = line_no
        super().__init__(f"line {line_no}: {message}" if line_no else message)


def _strip_prefix(path: str) -> str:
    if path.startswith("a/") or path.startswith("b/"):
        return path[2:]
    return path


def _parse_header_path(value: str) -> str:
    """Path from a ``---``/``+++`` line, without timestamp or a/ b/ prefix."""
    token = value.split("\t", 1)[0].strip()
    if len(token) >= 2 and token[0] == token[-1] == '"':
        token = token[1:-1]
    if token == NULL_PATH:
        return NULL_PATH
    return _strip_prefix(token)


def _split_lines(text: str) -> List[str]:
    """Split on ``\\n`` only; content may hold \\r, \\x0c, U+2028 and the like."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _to_int(value: Optional[str], field: str, header: str, line_no: int) -> int:
    if value is None:
        return 1  # "@@ -5 +5 @@" omits counts of one
    try:
        number = int(value)
    except ValueError:
        raise DiffParseError(
            f"non-numeric {field} {value!r} in hunk header {header!r}", line_no
        ) from None
    if number < 0:
        raise DiffParseError(f"negative {field} in hunk header {header!r}", line_no)
    return number


class _FileBuilder:
    """Mutable accumulator for one file section; frozen by :meth:`build`."""

    def __init__(self, old_path: Optional[str], new_path: Optional[str]) -> None:
        self.old_path = old_path
        self.new_path = new_path
        self.is_new = False
        self.is_deleted = False
        self.is_rename = False
        self.is_binary = False
        self.hunks: List[Hunk] = []

    def build(self) -> FileDiff:
        old_path, new_path = self.old_path, self.new_path
        if self.is_new or old_path == NULL_PATH:
            status = FileStatus.ADDED
            old_path = NULL_PATH
        elif self.is_deleted or new_path == NULL_PATH:
            status = FileStatus.DELETED
            new_path = NULL_PATH
        elif self.is_rename or (old_path and new_path and old_path != new_path):
            status = FileStatus.RENAMED
        else:
            status = FileStatus.MODIFIED

        return FileDiff(
            old_path=old_path,
            new_path=new_path,
            status=status,
            is_binary=self.is_binary,
            hunks=() if self.is_binary else tuple(self.hunks),
        )


class DiffParser:
    """Parse unified diff text into :class:`FileDiff` records, in diff order.

    Usage::

        for file_diff in DiffParser(diff_text).parse():
            ...
    """

    def __init__(self, diff_text: str) -> None:
        self._lines = _split_lines(diff_text.lstrip("\ufeff"))

    def parse(self) -> Generator[FileDiff, None, None]:
        """Yield one FileDiff per file section. Raises DiffParseError."""
        idx = 0
        total = len(self._lines)
        current: Optional[_FileBuilder] = None

        while idx < total:
            raw_line = self._lines[idx]

            # --- diff --git header → new file context ---
            if raw_line.startswith("diff --git "):
                if current is not None:
                    yield self._finish(current)
                current = self._start_git_file(raw_line)
                idx += 1
                continue

            # --- ---/+++ pair → paths (also starts a section for plain diff -u) ---
            if (
                raw_line.startswith("--- ")
                and idx + 1 < total
                and self._lines[idx + 1].startswith("+++ ")
            ):
                if current is None or current.hunks:
                    if current is not None:
                        yield self._finish(current)
                    current = _FileBuilder(None, None)
                current.old_path = _parse_header_path(raw_line[4:])
                current.new_path = _parse_header_path(self._lines[idx + 1][4:])
                idx += 2
                continue

            # --- Hunk header ---
            if raw_line.startswith("@@"):
                if current is None:
                    raise DiffParseError("hunk header outside of a file section", idx + 1)
                hunk, idx = self._parse_hunk(idx)
                current.hunks.append(hunk)
                continue

            if current is not None:
                self._apply_sub_header(current, raw_line, idx)
            idx += 1

        if current is not None:
            yield self._finish(current)

    # ---- file sections ----

    @staticmethod
    def _start_git_file(raw_line: str) -> _FileBuilder:
        m = _DIFF_HEADER_RE.match(raw_line)
        if m:
            return _FileBuilder(m.group(1), m.group(2))
        # --no-prefix output: "diff --git old new"
        parts = raw_line.split()
        old_path = parts[2] if len(parts) > 2 else None
        new_path = parts[3] if len(parts) > 3 else None
        return _FileBuilder(old_path, new_path)

    @staticmethod
    def _apply_sub_header(current: _FileBuilder, raw_line: str, idx: int) -> None:
        if _NEW_FILE_RE.match(raw_line):
            current.is_new = True
        elif _DELETED_FILE_RE.match(raw_line):
            current.is_deleted = True
        elif rm := _RENAME_FROM_RE.match(raw_line):
            current.old_path = rm.group(1)
            current.is_rename = True
        elif rt := _RENAME_TO_RE.match(raw_line):
            current.new_path = rt.group(1)
            current.is_rename = True
        elif _BINARY_RE.match(raw_line) or raw_line == _GIT_BINARY_PATCH:
            current.is_binary = True
        elif current.hunks and raw_line[:1] in ("+", "-", " ") and not current.is_binary:
            raise DiffParseError(
                "hunk content beyond the counts declared in its header", idx + 1
            )

    @staticmethod
    def _finish(current: _FileBuilder) -> FileDiff:
        file_diff = current.build()
        logger.debug(
            "parsed %s (%s, %d hunks%s)",
            file_diff.path,
            file_diff.status.value,
            len(file_diff.hunks),
            ", binary" if file_diff.is_binary else "",
        )
        return file_diff

    # ---- hunks ----

    def _parse_hunk(self, idx: int) -> Tuple[Hunk, int]:
        """Consume one hunk starting at its header; return it and the next index."""
        header = self._lines[idx]
        header_no = idx + 1
        m = _HUNK_HEADER_RE.match(header)
        if m is None:
            raise DiffParseError(f"malformed hunk header {header!r}", header_no)

        old_start = _to_int(m.group(1), "old start", header, header_no)
        old_count = _to_int(m.group(2), "old count", header, header_no)
        new_start = _to_int(m.group(3), "new start", header, header_no)
        new_count = _to_int(m.group(4), "new count", header, header_no)

        # A zero-count range names the line *before* the hunk.
        old_no = old_start if old_count else old_start + 1
        new_no = new_start if new_count else new_start + 1
        old_seen = new_seen = 0
        lines: List[DiffLine] = []
        total = len(self._lines)
        idx += 1

        while old_seen < old_count or new_seen < new_count:
            if idx >= total:
                raise DiffParseError(
                    f"hunk {header!r} ended after -{old_seen}/+{new_seen} "
                    f"of -{old_count}/+{new_count} declared lines",
                    header_no,
                )
            raw_line = self._lines[idx]
            marker = raw_line[:1]

            if marker == "\\":
                idx += 1
                continue
            if marker == "+":
                lines.append(DiffLine(LineType.ADDED, raw_line[1:], new_line_no=new_no))
                new_no += 1
                new_seen += 1
            elif marker == "-":
                lines.append(DiffLine(LineType.REMOVED, raw_line[1:], old_line_no=old_no))
                old_no += 1
                old_seen += 1
            elif marker == " " or raw_line == "":
                # Some tools strip the lone space of an empty context line.
                lines.append(DiffLine(LineType.CONTEXT, raw_line[1:], old_no, new_no))
                old_no += 1
                new_no += 1
                old_seen += 1
                new_seen += 1
            else:
                raise DiffParseError(
                    f"hunk {header!r} ended after -{old_seen}/+{new_seen} "
                    f"of -{old_count}/+{new_count} declared lines",
                    idx + 1,
                )

            if old_seen > old_count or new_seen > new_count:
                raise DiffParseError(
                    f"hunk {header!r} has more lines than its header declares",
                    idx + 1,
                )
            idx += 1

        # "\ No newline at end of file" may trail the last counted line.
        while idx < total and self._lines[idx].startswith("\\"):
            idx += 1

        hunk = Hunk(
            old_start=old_start,
            old_count=old_count,
            new_start=new_start,
            new_count=new_count,
            lines=tuple(lines),
        )
        return hunk, idx


def parse_diff(diff_text: str) -> List[FileDiff]:
    """Parse *diff_text* into a list of FileDiff. Empty input yields ``[]``."""
    return list(DiffParser(diff_text).parse())

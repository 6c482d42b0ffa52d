"""Diff → unit mapping.

Each file is processed independently into an immutable FileAnalysis; the
run result is an ordered fold of those partials in diff order.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import PurePosixPath
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from diffgate.analysis.classifier import classify, first_match
from diffgate.analysis.models import (
    AnalysisScope,
    CodeChange,
    FileAnalysis,
    SkippedFile,
    SkipReason,
    UntrackedLines,
)
from diffgate.analysis.sources import SourceAccessError, SourceReader
from diffgate.config.schema import DiffGateConfig
from diffgate.git.models import FileDiff, Hunk, LineType
from diffgate.units.extractor import SourceParseError, extract_units
from diffgate.units.models import UnitForest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MappedDiff:
    changes: Tuple[CodeChange, ...]
    scope: AnalysisScope
    untracked: Tuple[UntrackedLines, ...]


def project_lines(hunk: Hunk) -> Iterator[Tuple[LineType, int]]:
    """Yield ``(line_type, new-side line)`` for every added and removed line.

    Removed lines are placed at the post-image position implied by the
    context scanned so far: the line that now follows the removal.
    """
    cursor = hunk.new_start if hunk.new_count > 0 else hunk.new_start + 1
    for line in hunk.lines:
        if line.line_type == LineType.CONTEXT:
            cursor += 1
        elif line.line_type == LineType.ADDED:
            yield LineType.ADDED, line.new_line_no if line.new_line_no is not None else cursor
            cursor += 1
        else:
            yield LineType.REMOVED, cursor


def _skip(file_diff: FileDiff, path: str, reason: SkipReason, detail: str = "") -> FileAnalysis:
    return FileAnalysis(
        path=path,
        skipped=SkippedFile(
            path=path,
            reason=reason,
            detail=detail,
            lines_added=file_diff.total_added,
            lines_removed=file_diff.total_removed,
        ),
    )


def _attribute(
    path: str,
    file_diff: FileDiff,
    forest: UnitForest,
    config: DiffGateConfig,
) -> FileAnalysis:
    added: Dict[int, int] = {}
    removed: Dict[int, int] = {}
    untracked_added = 0
    untracked_removed = 0

    for hunk in file_diff.hunks:
        for line_type, target in project_lines(hunk):
            index = forest.innermost(target)
            if line_type == LineType.ADDED:
                if index is None:
                    untracked_added += 1
                else:
                    added[index] = added.get(index, 0) + 1
            else:
                if index is None:
                    untracked_removed += 1
                else:
                    removed[index] = removed.get(index, 0) + 1

    touched = sorted(set(added) | set(removed), key=lambda i: (forest.units[i].span.start, i))
    changes = []
    for index in touched:
        unit = forest.units[index]
        changes.append(
            CodeChange(
                path=path,
                unit=unit,
                classification=classify(path, unit, config.classification),
                lines_added=added.get(index, 0),
                lines_removed=removed.get(index, 0),
            )
        )

    untracked = None
    if untracked_added or untracked_removed:
        untracked = UntrackedLines(path, untracked_added, untracked_removed, "unmatched")
    return FileAnalysis(path=path, changes=tuple(changes), untracked=untracked)


def map_file(
    file_diff: FileDiff,
    reader: SourceReader,
    config: DiffGateConfig,
) -> FileAnalysis:
    """Map one file's diff lines onto its units. All-or-nothing per file."""
    started = time.perf_counter()
    path = file_diff.path

    if file_diff.is_binary:
        return _skip(file_diff, path, SkipReason.BINARY)

    pattern = first_match(path, config.classification.ignore_paths)
    if pattern is not None:
        logger.info("ignoring %s (matches %r)", path, pattern)
        return _skip(file_diff, path, SkipReason.IGNORED, pattern)

    if PurePosixPath(path).suffix not in config.analysis.extensions:
        return _skip(file_diff, path, SkipReason.NON_SOURCE)

    if file_diff.is_deleted:
        untracked = None
        if file_diff.total_added or file_diff.total_removed:
            untracked = UntrackedLines(
                path, file_diff.total_added, file_diff.total_removed, "deleted-file"
            )
        return FileAnalysis(path=path, untracked=untracked)

    try:
        source = reader(path)
    except SourceAccessError as exc:
        if config.analysis.on_access_error == "abort":
            raise
        logger.warning("skipping %s: %s", path, exc)
        return _skip(file_diff, path, SkipReason.ACCESS_ERROR, str(exc))

    try:
        forest = extract_units(source, path)
    except SourceParseError as exc:
        logger.warning("skipping %s: %s", path, exc)
        return _skip(file_diff, path, SkipReason.PARSE_FAILED, str(exc))

    result = _attribute(path, file_diff, forest, config)
    logger.debug(
        "mapped %s: %d units changed in %.1fms",
        path,
        len(result.changes),
        (time.perf_counter() - started) * 1000,
    )
    return result


def map_files(
    file_diffs: Sequence[FileDiff],
    reader: SourceReader,
    config: DiffGateConfig,
    workers: int = 1,
) -> List[FileAnalysis]:
    """Per-file partials in diff order, optionally computed on a thread pool."""
    work = partial(map_file, reader=reader, config=config)
    if workers <= 1 or len(file_diffs) <= 1:
        return [work(fd) for fd in file_diffs]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        # map() yields in submission order whatever the completion order.
        return list(executor.map(work, file_diffs))


def fold(partials: Sequence[FileAnalysis]) -> MappedDiff:
    changes: List[CodeChange] = []
    untracked: List[UntrackedLines] = []
    analyzed: List[str] = []
    skipped: List[SkippedFile] = []
    patterns: List[str] = []

    for part in partials:
        changes.extend(part.changes)
        if part.untracked is not None:
            untracked.append(part.untracked)
        if part.skipped is None:
            analyzed.append(part.path)
            continue
        skipped.append(part.skipped)
        if part.skipped.reason is SkipReason.IGNORED and part.skipped.detail not in patterns:
            patterns.append(part.skipped.detail)

    return MappedDiff(
        changes=tuple(changes),
        scope=AnalysisScope(
            analyzed_files=tuple(analyzed),
            skipped_files=tuple(skipped),
            ignore_patterns=tuple(patterns),
        ),
        untracked=tuple(untracked),
    )


def map_diff(
    file_diffs: Sequence[FileDiff],
    reader: SourceReader,
    config: DiffGateConfig,
    workers: Optional[int] = None,
) -> MappedDiff:
    return fold(map_files(file_diffs, reader, config, workers or config.analysis.workers))

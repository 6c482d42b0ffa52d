"""Analysis pipeline: parse → map → classify → score."""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

from diffgate.analysis.mapper import map_diff
from diffgate.analysis.models import AnalysisResult
from diffgate.analysis.scoring import score
from diffgate.analysis.sources import SourceReader
from diffgate.config.loader import validate_config
from diffgate.config.schema import DiffGateConfig
from diffgate.git.diff_parser import parse_diff
from diffgate.git.models import FileDiff

logger = logging.getLogger(__name__)


def analyze_files(
    file_diffs: Sequence[FileDiff],
    config: DiffGateConfig,
    reader: SourceReader,
    *,
    workers: Optional[int] = None,
) -> AnalysisResult:
    """Analyze already-parsed file diffs. Config is validated first."""
    validate_config(config)

    mapped = map_diff(file_diffs, reader, config, workers)
    summary, violations = score(mapped.changes, mapped.untracked, config.weights, config.limits)

    for v in violations:
        logger.warning("limit %s exceeded: %d > %d", v.name, v.observed, v.threshold)

    return AnalysisResult(
        changes=mapped.changes,
        scope=mapped.scope,
        untracked=mapped.untracked,
        summary=summary,
        violated_limits=violations,
    )


def analyze(
    diff_text: str,
    config: DiffGateConfig,
    reader: SourceReader,
    *,
    workers: Optional[int] = None,
) -> AnalysisResult:
    """Run the full pipeline on *diff_text*.

    DiffParseError and ConfigError propagate; per-file failures become
    skip records in ``result.scope``.
    """
    start = time.perf_counter()
    validate_config(config)
    file_diffs = parse_diff(diff_text)
    result = analyze_files(file_diffs, config, reader, workers=workers)
    logger.info(
        "analyzed %d files (%d skipped), weighted score %d in %.0fms",
        len(result.scope.analyzed_files),
        len(result.scope.skipped_files),
        result.weighted_score,
        (time.perf_counter() - start) * 1000,
    )
    return result

"""JSON reporter for CI pipelines."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from diffgate import __version__
from diffgate.analysis.models import AnalysisResult, Summary
from diffgate.config.schema import DiffGateConfig


def _summary_dict(s: Summary) -> Dict[str, Any]:
    return {
        "prod_functions": s.prod_functions,
        "prod_structs": s.prod_structs,
        "prod_other": s.prod_other,
        "prod_units": s.prod_units,
        "test_units": s.test_units,
        "prod_lines_added": s.prod_lines_added,
        "prod_lines_removed": s.prod_lines_removed,
        "test_lines_added": s.test_lines_added,
        "test_lines_removed": s.test_lines_removed,
        "untracked_lines_added": s.untracked_lines_added,
        "untracked_lines_removed": s.untracked_lines_removed,
        "total_lines_added": s.total_lines_added,
        "total_lines_removed": s.total_lines_removed,
        "weighted_score": s.weighted_score,
        "exceeds_limit": s.exceeds_limit,
        "by_classification": {
            c.value: {
                "units": t.units,
                "lines_added": t.lines_added,
                "lines_removed": t.lines_removed,
            }
            for c, t in s.by_classification.items()
        },
        "per_kind": {k.value: n for k, n in s.per_kind.items()},
    }


def to_dict(result: AnalysisResult, config: DiffGateConfig) -> Dict[str, Any]:
    """Convert AnalysisResult to a JSON-serialisable dict."""
    changes: List[Dict[str, Any]] = []
    if config.output.include_details:
        for c in result.changes:
            changes.append({
                "file": c.path,
                "unit": c.unit.name,
                "qualified_name": c.unit.qualified_name,
                "kind": c.unit.kind.value,
                "visibility": c.unit.visibility.value,
                "classification": c.classification.value,
                "span": [c.unit.span.start, c.unit.span.end],
                "lines_added": c.lines_added,
                "lines_removed": c.lines_removed,
            })

    return {
        "version": __version__,
        "summary": _summary_dict(result.summary),
        "violated_limits": [
            {"name": v.name, "threshold": v.threshold, "observed": v.observed}
            for v in result.violated_limits
        ],
        "changes": changes,
        "untracked": [
            {
                "file": u.path,
                "lines_added": u.lines_added,
                "lines_removed": u.lines_removed,
                "reason": u.reason,
            }
            for u in result.untracked
        ],
        "scope": {
            "analyzed_files": list(result.scope.analyzed_files),
            "skipped_files": [
                {
                    "file": s.path,
                    "reason": s.reason.value,
                    **({"detail": s.detail} if s.detail else {}),
                }
                for s in result.scope.skipped_files
            ],
            "ignore_patterns": list(result.scope.ignore_patterns),
        },
    }


def render(result: AnalysisResult, config: DiffGateConfig) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(result, config), indent=2)

"""``key=value`` lines for CI step outputs (e.g. ``$GITHUB_OUTPUT``)."""

from __future__ import annotations

from typing import List, Tuple

from diffgate.analysis.models import AnalysisResult


def to_pairs(result: AnalysisResult) -> List[Tuple[str, str]]:
    s = result.summary
    return [
        ("prod_functions_changed", str(s.prod_functions)),
        ("prod_structs_changed", str(s.prod_structs)),
        ("prod_other_changed", str(s.prod_other)),
        ("test_units_changed", str(s.test_units)),
        ("prod_lines_added", str(s.prod_lines_added)),
        ("prod_lines_removed", str(s.prod_lines_removed)),
        ("test_lines_added", str(s.test_lines_added)),
        ("test_lines_removed", str(s.test_lines_removed)),
        ("weighted_score", str(s.weighted_score)),
        ("exceeds_limit", "true" if s.exceeds_limit else "false"),
    ]


def render(result: AnalysisResult) -> str:
    return "".join(f"{key}={value}\n" for key, value in to_pairs(result))

"""Review-comment markdown.

The first line is a stable HTML marker so a CI job can find and update its
previous comment instead of posting a new one.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from diffgate.analysis.models import AnalysisResult, CodeChange, SkipReason
from diffgate.config.schema import DiffGateConfig
from diffgate.units.models import UnitKind

COMMENT_MARKER = "<!-- diffgate-comment -->"

_MAX_SKIPPED_LISTED = 10

_LIMIT_LABELS = {
    "max_prod_units": ("Production Units", "units"),
    "max_weighted_score": ("Weighted Score", "weighted score"),
    "max_prod_lines": ("Lines Added", "lines added"),
}


def _limit_rows(result: AnalysisResult, config: DiffGateConfig) -> List[Tuple[str, int, int]]:
    """(name, observed, threshold) for every configured limit, in evaluation order."""
    s = result.summary
    limits = config.limits
    rows: List[Tuple[str, int, Optional[int]]] = [
        ("max_prod_units", s.prod_units, limits.max_prod_units),
        ("max_weighted_score", s.weighted_score, limits.max_weighted_score),
        ("max_prod_lines", s.prod_lines_added, limits.max_prod_lines),
    ]
    for kind in UnitKind:
        if kind in limits.per_kind:
            rows.append((f"per_kind.{kind.value}", s.per_kind.get(kind, 0), limits.per_kind[kind]))
    return [(name, observed, t) for name, observed, t in rows if t is not None]


def _label(name: str) -> Tuple[str, str]:
    if name in _LIMIT_LABELS:
        return _LIMIT_LABELS[name]
    kind = name.split(".", 1)[1]
    return f"Production `{kind}` units", f"{kind} units"


def _change_rows(changes: Sequence[CodeChange]) -> List[str]:
    rows = ["| File | Unit | Type | Changes |", "|------|------|:----:|--------:|"]
    for c in changes:
        span = c.unit.span
        rows.append(
            f"| `{c.path}:{span.start}-{span.end}` | `{c.unit.qualified_name}` "
            f"| {c.unit.kind.value} | +{c.lines_added} -{c.lines_removed} |"
        )
    return rows


def _details(summary: str, body: List[str]) -> List[str]:
    return ["", "<details>", f"<summary>{summary}</summary>", "", *body, "", "</details>"]


def render(result: AnalysisResult, config: DiffGateConfig) -> str:
    s = result.summary
    out: List[str] = [COMMENT_MARKER, "## Rust Diff Analysis", ""]

    if result.exceeds_limit:
        out.append("> [!CAUTION]")
        out.append("> **PR exceeds configured limits.** Consider splitting into smaller PRs.")
        out.append(">")
        for v in result.violated_limits:
            _, noun = _label(v.name)
            out.append(f"> - **{v.observed}** {noun} (limit: {v.threshold})")
    else:
        out.append("> [!TIP]")
        out.append("> **PR size is within limits.**")

    limit_table = ["| Metric | Value | Limit | Status |", "|--------|------:|------:|:------:|"]
    fired = {v.name for v in result.violated_limits}
    for name, observed, threshold in _limit_rows(result, config):
        title, _ = _label(name)
        status = "❌" if name in fired else "✅"
        limit_table.append(f"| {title} | {observed} | {threshold} | {status} |")
    out += _details("<strong>Limits</strong> — configured thresholds", limit_table)

    non_prod = [c for c in result.changes if not c.is_production]
    breakdown = [
        "| Metric | Production | Non-production |",
        "|--------|----------:|-----:|",
        f"| Functions | {s.prod_functions} | - |",
        f"| Structs/Enums | {s.prod_structs} | - |",
        f"| Other | {s.prod_other} | - |",
        f"| Lines added | +{s.prod_lines_added} | +{s.test_lines_added} |",
        f"| Lines removed | -{s.prod_lines_removed} | -{s.test_lines_removed} |",
        f"| **Total units** | **{s.prod_units}** | {s.test_units} |",
        "",
        f"Weighted score: **{s.weighted_score}**",
    ]
    if s.untracked_lines_added or s.untracked_lines_removed:
        breakdown.append(
            f"Lines outside any unit: +{s.untracked_lines_added} -{s.untracked_lines_removed}"
        )
    out += _details("<strong>Summary</strong> — breakdown of changes by category", breakdown)

    if config.output.include_details:
        prod = result.production_changes
        if prod:
            out += _details(
                f"<strong>Production Changes</strong> — {len(prod)} units modified",
                _change_rows(prod),
            )
        if non_prod:
            out += _details(
                f"<strong>Non-production Changes</strong> — {len(non_prod)} units modified",
                _change_rows(non_prod),
            )

    out += _scope_section(result)
    out.append("")
    return "\n".join(out)


def _scope_section(result: AnalysisResult) -> List[str]:
    scope = result.scope
    if not (scope.analyzed_files or scope.skipped_files or scope.ignore_patterns):
        return []

    body: List[str] = []
    if scope.analyzed_files:
        body += [f"**Analyzed:** {len(scope.analyzed_files)} files", ""]
    if scope.ignore_patterns:
        body.append("**Excluded patterns:**")
        body += [f"- `{p}`" for p in scope.ignore_patterns]
        body.append("")

    counts = {}
    for skipped in scope.skipped_files:
        counts[skipped.reason] = counts.get(skipped.reason, 0) + 1
    if counts:
        body.append("**Skipped files:**")
        body += [f"- {counts[r]} {r.value}" for r in SkipReason if r in counts]
        body.append("")
    if scope.skipped_files and len(scope.skipped_files) <= _MAX_SKIPPED_LISTED:
        body.append("**Skipped file list:**")
        for skipped in scope.skipped_files:
            detail = f": {skipped.detail}" if skipped.detail else ""
            body.append(f"- `{skipped.path}` ({skipped.reason.value}{detail})")
    return _details("Analysis Scope", body)

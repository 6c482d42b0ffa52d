"""Weighted score, summary aggregates, and limit evaluation."""

from __future__ import annotations

import dataclasses
from typing import Dict, List, Optional, Sequence, Tuple

from diffgate.analysis.models import (
    Classification,
    ClassTotals,
    CodeChange,
    LimitViolation,
    Summary,
    UntrackedLines,
)
from diffgate.config.schema import LimitsConfig, WeightsConfig
from diffgate.units.models import UnitKind

_FUNCTION_KINDS = frozenset({UnitKind.FUNCTION})
_STRUCT_KINDS = frozenset({UnitKind.STRUCT, UnitKind.ENUM})


def weighted_score(changes: Sequence[CodeChange], weights: WeightsConfig) -> int:
    """One weight per production unit, however many of its lines changed."""
    return sum(
        weights.weight_for(c.unit.kind, c.unit.visibility)
        for c in changes
        if c.is_production
    )


def summarize(
    changes: Sequence[CodeChange],
    untracked: Sequence[UntrackedLines],
    weights: WeightsConfig,
) -> Summary:
    totals: Dict[Classification, List[int]] = {c: [0, 0, 0] for c in Classification}
    per_kind: Dict[UnitKind, int] = {}
    prod_functions = prod_structs = prod_other = 0

    for change in changes:
        bucket = totals[change.classification]
        bucket[0] += 1
        bucket[1] += change.lines_added
        bucket[2] += change.lines_removed
        if not change.is_production:
            continue
        kind = change.unit.kind
        per_kind[kind] = per_kind.get(kind, 0) + 1
        if kind in _FUNCTION_KINDS:
            prod_functions += 1
        elif kind in _STRUCT_KINDS:
            prod_structs += 1
        else:
            prod_other += 1

    prod = totals[Classification.PRODUCTION]
    non_prod = [t for c, t in totals.items() if c is not Classification.PRODUCTION]
    untracked_added = sum(u.lines_added for u in untracked)
    untracked_removed = sum(u.lines_removed for u in untracked)
    tracked_added = sum(t[1] for t in totals.values())
    tracked_removed = sum(t[2] for t in totals.values())

    return Summary(
        by_classification={c: ClassTotals(*t) for c, t in totals.items()},
        per_kind={k: per_kind[k] for k in UnitKind if k in per_kind},
        prod_functions=prod_functions,
        prod_structs=prod_structs,
        prod_other=prod_other,
        test_units=sum(t[0] for t in non_prod),
        prod_lines_added=prod[1],
        prod_lines_removed=prod[2],
        test_lines_added=sum(t[1] for t in non_prod),
        test_lines_removed=sum(t[2] for t in non_prod),
        untracked_lines_added=untracked_added,
        untracked_lines_removed=untracked_removed,
        total_lines_added=tracked_added + untracked_added,
        total_lines_removed=tracked_removed + untracked_removed,
        weighted_score=weighted_score(changes, weights),
    )


def _check(name: str, threshold: Optional[int], observed: int) -> Optional[LimitViolation]:
    if threshold is None or observed <= threshold:
        return None
    return LimitViolation(name=name, threshold=threshold, observed=observed)


def evaluate_limits(summary: Summary, limits: LimitsConfig) -> Tuple[LimitViolation, ...]:
    """Fired limits in fixed order: top-level limits, then per-kind in UnitKind order."""
    candidates = [
        _check("max_prod_units", limits.max_prod_units, summary.prod_units),
        _check("max_weighted_score", limits.max_weighted_score, summary.weighted_score),
        _check("max_prod_lines", limits.max_prod_lines, summary.prod_lines_added),
    ]
    for kind in UnitKind:
        if kind in limits.per_kind:
            candidates.append(
                _check(f"per_kind.{kind.value}", limits.per_kind[kind], summary.per_kind.get(kind, 0))
            )
    return tuple(v for v in candidates if v is not None)


def score(
    changes: Sequence[CodeChange],
    untracked: Sequence[UntrackedLines],
    weights: WeightsConfig,
    limits: LimitsConfig,
) -> Tuple[Summary, Tuple[LimitViolation, ...]]:
    summary = summarize(changes, untracked, weights)
    violations = evaluate_limits(summary, limits)
    return dataclasses.replace(summary, exceeds_limit=bool(violations)), violations

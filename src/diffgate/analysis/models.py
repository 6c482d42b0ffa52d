"""Analysis result data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from diffgate.units.models import CodeUnit, UnitKind


class Classification(str, Enum):
    PRODUCTION = "production"
    TEST = "test"
    BENCHMARK = "benchmark"
    EXAMPLE = "example"
    BUILD_SCRIPT = "build_script"


class SkipReason(str, Enum):
    BINARY = "binary"
    IGNORED = "ignored"
    NON_SOURCE = "non-source"
    PARSE_FAILED = "parse failed"
    ACCESS_ERROR = "access error"


@dataclass(frozen=True)
class CodeChange:
    """Changed lines attributed to one unit of one file."""

    path: str
    unit: CodeUnit
    classification: Classification
    lines_added: int = 0
    lines_removed: int = 0

    @property
    def is_production(self) -> bool:
        return self.classification is Classification.PRODUCTION


@dataclass(frozen=True)
class SkippedFile:
    path: str
    reason: SkipReason
    detail: str = ""  # matched pattern or error message
    lines_added: int = 0
    lines_removed: int = 0


@dataclass(frozen=True)
class UntrackedLines:
    """Changed lines of one file that belong to no unit.

    Counted in line totals, never in the weighted score or per-kind limits.
    """

    path: str
    lines_added: int
    lines_removed: int
    reason: str = "unmatched"  # 'unmatched' | 'deleted-file'


@dataclass(frozen=True)
class AnalysisScope:
    analyzed_files: Tuple[str, ...] = ()
    skipped_files: Tuple[SkippedFile, ...] = ()
    ignore_patterns: Tuple[str, ...] = ()  # patterns that matched at least one file


@dataclass(frozen=True)
class FileAnalysis:
    """Immutable per-file partial result; folded in diff order."""

    path: str
    changes: Tuple[CodeChange, ...] = ()
    untracked: Optional[UntrackedLines] = None
    skipped: Optional[SkippedFile] = None

    @property
    def analyzed(self) -> bool:
        return self.skipped is None


@dataclass(frozen=True)
class ClassTotals:
    units: int = 0
    lines_added: int = 0
    lines_removed: int = 0


@dataclass(frozen=True)
class LimitViolation:
    name: str  # e.g. 'max_weighted_score' or 'per_kind.function'
    threshold: int
    observed: int


@dataclass(frozen=True)
class Summary:
    by_classification: Dict[Classification, ClassTotals] = field(default_factory=dict)
    per_kind: Dict[UnitKind, int] = field(default_factory=dict)  # production units only
    prod_functions: int = 0
    prod_structs: int = 0  # structs and enums
    prod_other: int = 0
    test_units: int = 0  # every non-production unit
    prod_lines_added: int = 0
    prod_lines_removed: int = 0
    test_lines_added: int = 0
    test_lines_removed: int = 0
    untracked_lines_added: int = 0
    untracked_lines_removed: int = 0
    total_lines_added: int = 0
    total_lines_removed: int = 0
    weighted_score: int = 0
    exceeds_limit: bool = False

    @property
    def prod_units(self) -> int:
        return self.prod_functions + self.prod_structs + self.prod_other


@dataclass(frozen=True)
class AnalysisResult:
    """Complete result of one analysis run."""

    changes: Tuple[CodeChange, ...] = ()
    scope: AnalysisScope = field(default_factory=AnalysisScope)
    untracked: Tuple[UntrackedLines, ...] = ()
    summary: Summary = field(default_factory=Summary)
    violated_limits: Tuple[LimitViolation, ...] = ()

    @property
    def weighted_score(self) -> int:
        return self.summary.weighted_score

    @property
    def exceeds_limit(self) -> bool:
        return self.summary.exceeds_limit

    @property
    def production_changes(self) -> Tuple[CodeChange, ...]:
        return tuple(c for c in self.changes if c.is_production)

"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

from diffgate.units.models import UnitKind, Visibility

OutputFormat = Literal["github", "json", "human", "comment"]
AccessErrorPolicy = Literal["skip", "abort"]

OUTPUT_FORMATS: Tuple[str, ...] = ("github", "json", "human", "comment")
ACCESS_ERROR_POLICIES: Tuple[str, ...] = ("skip", "abort")

WeightKey = Tuple[UnitKind, Visibility]

DEFAULT_WEIGHTS: Dict[WeightKey, int] = {
    (UnitKind.FUNCTION, Visibility.PUBLIC): 3,
    (UnitKind.FUNCTION, Visibility.PRIVATE): 1,
    (UnitKind.STRUCT, Visibility.PUBLIC): 3,
    (UnitKind.STRUCT, Visibility.PRIVATE): 1,
    (UnitKind.ENUM, Visibility.PUBLIC): 3,
    (UnitKind.ENUM, Visibility.PRIVATE): 1,
    (UnitKind.TRAIT, Visibility.PUBLIC): 4,
    (UnitKind.TRAIT, Visibility.PRIVATE): 4,
    (UnitKind.IMPL, Visibility.PUBLIC): 2,
    (UnitKind.IMPL, Visibility.PRIVATE): 2,
}
DEFAULT_WEIGHT = 1


@dataclass
class ClassificationConfig:
    test_features: List[str] = field(default_factory=lambda: ["test-utils", "testing", "mock"])
    test_paths: List[str] = field(default_factory=lambda: ["tests/"])
    benchmark_paths: List[str] = field(default_factory=lambda: ["benches/"])
    example_paths: List[str] = field(default_factory=lambda: ["examples/"])
    build_scripts: List[str] = field(default_factory=lambda: ["build.rs"])  # file names
    test_modules: List[str] = field(default_factory=lambda: ["tests"])
    ignore_paths: List[str] = field(default_factory=list)


@dataclass
class WeightsConfig:
    """(kind, visibility) → weight, with ``default`` for every missing pair."""

    table: Dict[WeightKey, int] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    default: int = DEFAULT_WEIGHT

    def weight_for(self, kind: UnitKind, visibility: Visibility) -> int:
        return self.table.get((kind, visibility), self.default)


@dataclass
class LimitsConfig:
    max_prod_units: Optional[int] = 30
    max_weighted_score: Optional[int] = 100
    max_prod_lines: Optional[int] = None  # compared with production lines added
    per_kind: Dict[UnitKind, int] = field(default_factory=dict)
    fail_on_exceed: bool = True  # only read at the exit-code boundary


@dataclass
class AnalysisConfig:
    extensions: List[str] = field(default_factory=lambda: [".rs"])
    on_access_error: AccessErrorPolicy = "skip"
    workers: int = 1


@dataclass
class OutputConfig:
    format: OutputFormat = "github"
    include_details: bool = True


@dataclass
class DiffGateConfig:
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    weights: WeightsConfig = field(default_factory=WeightsConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    source: Optional[str] = None  # file the config was loaded from

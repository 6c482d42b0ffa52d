"""Change analysis — mapping, classification, scoring."""

from diffgate.analysis.classifier import classify, path_matches
from diffgate.analysis.engine import analyze, analyze_files
from diffgate.analysis.models import (
    AnalysisResult,
    AnalysisScope,
    Classification,
    CodeChange,
    FileAnalysis,
    LimitViolation,
    SkippedFile,
    SkipReason,
    Summary,
    UntrackedLines,
)
from diffgate.analysis.sources import (
    GitRevisionReader,
    MappingReader,
    SourceAccessError,
    SourceReader,
    WorkingTreeReader,
)

__all__ = [
    "AnalysisResult",
    "AnalysisScope",
    "Classification",
    "CodeChange",
    "FileAnalysis",
    "GitRevisionReader",
    "LimitViolation",
    "MappingReader",
    "SkipReason",
    "SkippedFile",
    "SourceAccessError",
    "SourceReader",
    "Summary",
    "UntrackedLines",
    "WorkingTreeReader",
    "analyze",
    "analyze_files",
    "classify",
    "path_matches",
]

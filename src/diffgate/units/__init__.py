"""Source unit extraction — declaration forest per file."""

from diffgate.units.extractor import SourceParseError, extract_units
from diffgate.units.models import (
    CodeUnit,
    LineSpan,
    ModuleFrame,
    UnitForest,
    UnitKind,
    Visibility,
)

__all__ = [
    "CodeUnit",
    "LineSpan",
    "ModuleFrame",
    "SourceParseError",
    "UnitForest",
    "UnitKind",
    "Visibility",
    "extract_units",
]

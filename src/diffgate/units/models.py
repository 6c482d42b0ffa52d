"""Declaration units extracted from one source file."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple


class UnitKind(str, Enum):
    FUNCTION = "function"
    STRUCT = "struct"
    ENUM = "enum"
    TRAIT = "trait"
    IMPL = "impl"
    CONST = "const"
    STATIC = "static"
    TYPE_ALIAS = "type_alias"
    MACRO = "macro"
    MODULE = "module"


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


@dataclass(frozen=True, slots=True)
class LineSpan:
    """Inclusive, 1-based line range."""

    start: int
    end: int

    def contains(self, line: int) -> bool:
        return self.start <= line <= self.end

    def __len__(self) -> int:
        return max(self.end - self.start + 1, 0)


@dataclass(frozen=True, slots=True)
class ModuleFrame:
    """One enclosing ``mod`` item: its name and its own normalized attributes."""

    name: str
    attributes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CodeUnit:
    kind: UnitKind
    visibility: Visibility
    name: str
    qualified_name: str
    span: LineSpan
    attributes: Tuple[str, ...] = ()
    module_path: Tuple[ModuleFrame, ...] = ()
    parent: Optional[int] = None
    children: Tuple[int, ...] = ()

    def has_attribute(self, token: str) -> bool:
        return token in self.attributes


@dataclass(frozen=True)
class UnitForest:
    """All units of a file, indexed; ``roots`` and ``children`` are ordered by span start.

    Children lie inside their parent's span and siblings never share a line,
    so at most one child at each level can contain a given line.
    """

    units: Tuple[CodeUnit, ...] = ()
    roots: Tuple[int, ...] = ()

    def __len__(self) -> int:
        return len(self.units)

    def innermost(self, line: int) -> Optional[int]:
        """Index of the deepest unit whose span contains *line*, or None."""
        found: Optional[int] = None
        level: Sequence[int] = self.roots
        while level:
            child = self._containing(level, line)
            if child is None:
                break
            found = child
            level = self.units[child].children
        return found

    def _containing(self, siblings: Sequence[int], line: int) -> Optional[int]:
        starts = [self.units[i].span.start for i in siblings]
        pos = bisect_right(starts, line) - 1
        if pos < 0:
            return None
        candidate = siblings[pos]
        return candidate if self.units[candidate].span.contains(line) else None

"""Rust declaration extraction on top of tree-sitter.

Builds the :class:`UnitForest` of one file's post-change text. Spans start
at the first line of the attribute/doc block directly above a declaration,
so the markers used for classification stay inside the unit.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from tree_sitter import Node, Parser
from tree_sitter_language_pack import get_language

from diffgate.units.models import (
    CodeUnit,
    LineSpan,
    ModuleFrame,
    UnitForest,
    UnitKind,
    Visibility,
)

logger = logging.getLogger(__name__)

_ITEM_KINDS = {
    "function_item": UnitKind.FUNCTION,
    "function_signature_item": UnitKind.FUNCTION,
    "struct_item": UnitKind.STRUCT,
    "union_item": UnitKind.STRUCT,
    "enum_item": UnitKind.ENUM,
    "trait_item": UnitKind.TRAIT,
    "impl_item": UnitKind.IMPL,
    "const_item": UnitKind.CONST,
    "static_item": UnitKind.STATIC,
    "type_item": UnitKind.TYPE_ALIAS,
    "associated_type": UnitKind.TYPE_ALIAS,
    "macro_definition": UnitKind.MACRO,
    "mod_item": UnitKind.MODULE,
}

# Items whose ``body`` field is searched for nested items.
_CONTAINERS = frozenset({"mod_item", "impl_item", "trait_item", "function_item"})

# Subtrees never searched for items (extern blocks only declare foreign symbols).
_OPAQUE = frozenset({"foreign_mod_item"})

_COMMENTS = frozenset({"line_comment", "block_comment"})

_WHITESPACE_RE = re.compile(r"\s+")

_local = threading.local()


class SourceParseError(Exception):
    """Raised when a file's text does not parse as Rust."""


def _get_parser() -> Parser:
    """Per-thread parser; tree-sitter parsers must not be shared across threads."""
    parser = getattr(_local, "parser", None)
    if parser is None:
        parser = Parser(get_language("rust"))
        _local.parser = parser
    return parser


def _text(node: Node) -> str:
    return node.text.decode("utf-8", errors="replace")


def _compact(text: str) -> str:
    return _WHITESPACE_RE.sub("", text)


def _is_doc_comment(node: Node) -> bool:
    raw = node.text or b""
    if node.type == "line_comment":
        return raw.startswith(b"///") and not raw.startswith(b"////")
    if node.type == "block_comment":
        return raw.startswith(b"/**") and not raw.startswith(b"/***") and raw != b"/**/"
    return False


def _first_error(node: Node) -> Node:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error:
            return _first_error(child)
    return node


def _type_name(node: Optional[Node]) -> str:
    """Last path segment of a type, without generic arguments."""
    if node is None:
        return "Unknown"
    if node.type in ("type_identifier", "primitive_type", "identifier"):
        return _text(node)
    if node.type == "generic_type":
        return _type_name(node.child_by_field_name("type"))
    if node.type == "scoped_type_identifier":
        return _type_name(node.child_by_field_name("name"))
    if node.type in ("reference_type", "pointer_type"):
        return _type_name(node.child_by_field_name("type"))
    return _compact(_text(node))


@dataclass
class _Draft:
    kind: UnitKind
    visibility: Visibility
    name: str
    qualified_name: str
    start: int
    end: int
    attributes: Tuple[str, ...]
    module_path: Tuple[ModuleFrame, ...]
    parent: Optional[int]
    children: List[int] = field(default_factory=list)

    def freeze(self) -> CodeUnit:
        return CodeUnit(
            kind=self.kind,
            visibility=self.visibility,
            name=self.name,
            qualified_name=self.qualified_name,
            span=LineSpan(self.start, self.end),
            attributes=self.attributes,
            module_path=self.module_path,
            parent=self.parent,
            children=tuple(self.children),
        )


class _ForestBuilder:
    """Walks the syntax tree once, appending units in pre-order."""

    def __init__(self) -> None:
        self._drafts: List[_Draft] = []
        self._roots: List[int] = []

    def build(self) -> UnitForest:
        return UnitForest(
            units=tuple(d.freeze() for d in self._drafts),
            roots=tuple(self._roots),
        )

    def visit(
        self,
        container: Node,
        parent: Optional[int],
        bounds: Tuple[int, int],
        scope: Tuple[str, ...],
        modules: Tuple[ModuleFrame, ...],
        in_trait: bool = False,
    ) -> None:
        lower, upper = bounds
        prev_end = lower - 1

        for item in _items(container):
            kind = _ITEM_KINDS[item.type]
            decorations = _decorations(item)
            start = decorations[0].start_point[0] + 1 if decorations else item.start_point[0] + 1
            # A line already owned by an earlier sibling stays with it.
            start = max(start, prev_end + 1)
            end = min(item.end_point[0] + 1, upper)
            name = _unit_name(item, kind)
            if start > end:
                logger.debug("skipping %s %s: shares its only line with a sibling", kind.value, name)
                continue
            prev_end = end

            attributes = _attributes(decorations)
            index = len(self._drafts)
            self._drafts.append(
                _Draft(
                    kind=kind,
                    visibility=_visibility(item, kind, in_trait),
                    name=name,
                    qualified_name="::".join(scope + (name,)),
                    start=start,
                    end=end,
                    attributes=attributes,
                    module_path=modules,
                    parent=parent,
                )
            )
            if parent is None:
                self._roots.append(index)
            else:
                self._drafts[parent].children.append(index)

            if item.type not in _CONTAINERS:
                continue
            body = item.child_by_field_name("body")
            if body is None:
                continue
            inner_modules = modules
            if kind is UnitKind.MODULE:
                inner_modules = modules + (ModuleFrame(name, attributes),)
            self.visit(
                body,
                index,
                (start, end),
                scope + (name,),
                inner_modules,
                in_trait=kind is UnitKind.TRAIT,
            )


def _items(node: Node) -> Iterator[Node]:
    """Item nodes below *node*, without descending into the items themselves."""
    for child in node.named_children:
        if child.type in _ITEM_KINDS:
            yield child
        elif child.type not in _OPAQUE:
            yield from _items(child)


def _decorations(item: Node) -> List[Node]:
    """Attribute and doc-comment siblings directly above *item*, in source order."""
    run: List[Node] = []
    sibling = item.prev_sibling
    while sibling is not None and (
        sibling.type == "attribute_item" or sibling.type in _COMMENTS
    ):
        run.append(sibling)
        sibling = sibling.prev_sibling
    run.reverse()
    # Plain comments above the first attribute or doc line are not part of the block.
    while run and run[0].type != "attribute_item" and not _is_doc_comment(run[0]):
        run.pop(0)
    return run


def _attributes(decorations: List[Node]) -> Tuple[str, ...]:
    tokens: List[str] = []
    for node in decorations:
        if node.type != "attribute_item":
            continue
        inner = next((c for c in node.named_children if c.type == "attribute"), None)
        raw = _text(inner) if inner is not None else _text(node)[2:-1]
        token = _compact(raw)
        if token and token not in tokens:
            tokens.append(token)
    return tuple(tokens)


def _visibility(item: Node, kind: UnitKind, in_trait: bool) -> Visibility:
    if in_trait:
        return Visibility.PUBLIC
    if kind in (UnitKind.IMPL, UnitKind.MACRO):
        return Visibility.PRIVATE
    for child in item.children:
        if child.type == "visibility_modifier":
            # pub(crate), pub(super) and pub(in path) stay private to the crate.
            return Visibility.PUBLIC if _compact(_text(child)) == "pub" else Visibility.PRIVATE
    return Visibility.PRIVATE


def _unit_name(item: Node, kind: UnitKind) -> str:
    if kind is UnitKind.IMPL:
        self_type = _type_name(item.child_by_field_name("type"))
        trait = item.child_by_field_name("trait")
        if trait is not None:
            return f"{_type_name(trait)} for {self_type}"
        return self_type
    name = item.child_by_field_name("name")
    return _text(name) if name is not None else "<anonymous>"


def extract_units(source: str, path: str = "<source>") -> UnitForest:
    """Parse *source* and return its unit forest.

    Raises SourceParseError when the text does not parse; no partial forest
    is ever returned for such a file.
    """
    data = source.encode("utf-8")
    tree = _get_parser().parse(data)
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root)
        raise SourceParseError(
            f"{path}: syntax error at line {bad.start_point[0] + 1}"
        )

    builder = _ForestBuilder()
    line_count = data.count(b"\n") + 1
    builder.visit(root, None, (1, line_count), (), ())
    forest = builder.build()
    logger.debug("extracted %d units from %s", len(forest), path)
    return forest

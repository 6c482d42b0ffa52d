"""Production vs. non-production classification of changed units.

Rules are evaluated in a fixed order and the first match wins:

1. example path, then build-script file name
2. test path, then benchmark path
3. test marker attribute, then benchmark marker attribute
4. enclosing (or own) module following the tests-module convention
5. ``cfg``/``cfg_attr`` naming a configured test feature
6. production

Identifier names are never a signal.
"""

from __future__ import annotations

import re
from fnmatch import fnmatch
from pathlib import PurePosixPath
from typing import Iterable, Optional, Sequence

from diffgate.analysis.models import Classification
from diffgate.config.schema import ClassificationConfig
from diffgate.units.models import CodeUnit, UnitKind

TEST_MARKERS = frozenset({"test", "tokio::test", "async_std::test", "rstest", "test_case"})
BENCH_MARKERS = frozenset({"bench"})

_GLOB_CHARS = frozenset("*?[")
_QUOTED_RE = re.compile(r'"(?:[^"\\]|\\.)*"')
_TEST_WORD_RE = re.compile(r"(?<![\w:])test(?![\w:=])")


def path_matches(path: str, pattern: str) -> bool:
    """Glob patterns match with fnmatch; anything else is a path-segment prefix."""
    if _GLOB_CHARS.intersection(pattern):
        return fnmatch(path, pattern)
    return path.startswith(pattern) or f"/{pattern}" in path


def first_match(path: str, patterns: Iterable[str]) -> Optional[str]:
    for pattern in patterns:
        if path_matches(path, pattern):
            return pattern
    return None


def _marker_name(token: str) -> str:
    """``tokio::test(flavor="multi_thread")`` → ``tokio::test``."""
    return token.split("(", 1)[0]


def _strip_negations(predicate: str) -> str:
    """Drop every ``not(...)`` group, nested parentheses included."""
    out = []
    i = 0
    while i < len(predicate):
        at_word = i == 0 or not (predicate[i - 1].isalnum() or predicate[i - 1] == "_")
        if at_word and predicate.startswith("not(", i):
            depth = 0
            j = i + 3
            while j < len(predicate):
                if predicate[j] == "(":
                    depth += 1
                elif predicate[j] == ")":
                    depth -= 1
                    if depth == 0:
                        break
                j += 1
            i = j + 1
            continue
        out.append(predicate[i])
        i += 1
    return "".join(out)


def is_cfg_test(token: str) -> bool:
    """True for ``cfg(test)``, ``cfg(all(test,unix))`` and friends, not ``cfg(not(test))``."""
    if not token.startswith("cfg("):
        return False
    predicate = _strip_negations(_QUOTED_RE.sub('""', token[4:-1]))
    return bool(_TEST_WORD_RE.search(predicate))


def _is_test_marker(token: str) -> bool:
    return _marker_name(token) in TEST_MARKERS or is_cfg_test(token)


def _is_bench_marker(token: str) -> bool:
    return _marker_name(token) in BENCH_MARKERS


def _names_test_feature(token: str, features: Sequence[str]) -> bool:
    if token.startswith("cfg("):
        predicate = token[4:-1]
    elif token.startswith("cfg_attr("):
        predicate = token[9:-1]
    else:
        return False
    predicate = _strip_negations(predicate)
    return any(f'feature="{name}"' in predicate for name in features)


def _is_tests_module(name: str, attributes: Iterable[str], rules: ClassificationConfig) -> bool:
    return name in rules.test_modules or any(is_cfg_test(a) for a in attributes)


def classify(path: str, unit: CodeUnit, rules: ClassificationConfig) -> Classification:
    """Classify *unit* of the file at *path*."""
    if first_match(path, rules.example_paths):
        return Classification.EXAMPLE
    file_name = PurePosixPath(path).name
    if any(fnmatch(file_name, pattern) for pattern in rules.build_scripts):
        return Classification.BUILD_SCRIPT

    if first_match(path, rules.test_paths):
        return Classification.TEST
    if first_match(path, rules.benchmark_paths):
        return Classification.BENCHMARK

    if any(_is_test_marker(a) for a in unit.attributes):
        return Classification.TEST
    if any(_is_bench_marker(a) for a in unit.attributes):
        return Classification.BENCHMARK

    if any(_is_tests_module(f.name, f.attributes, rules) for f in unit.module_path):
        return Classification.TEST
    if unit.kind is UnitKind.MODULE and _is_tests_module(unit.name, unit.attributes, rules):
        return Classification.TEST

    if any(_names_test_feature(a, rules.test_features) for a in unit.attributes):
        return Classification.TEST

    return Classification.PRODUCTION

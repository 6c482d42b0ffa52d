"""Load, merge and validate configuration from .diffgate.toml/.yaml, CLI flags, and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import-not-found]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

from diffgate.config.schema import (
    ACCESS_ERROR_POLICIES,
    DEFAULT_WEIGHT,
    DEFAULT_WEIGHTS,
    OUTPUT_FORMATS,
    AnalysisConfig,
    ClassificationConfig,
    DiffGateConfig,
    LimitsConfig,
    OutputConfig,
    WeightKey,
    WeightsConfig,
)
from diffgate.units.models import UnitKind, Visibility

CONFIG_FILENAMES = (".diffgate.toml", ".diffgate.yaml", ".diffgate.yml")


class ConfigError(Exception):
    """Raised when config is malformed, unreadable, or invalid."""


# Plural spellings accepted in [limits.per_kind] / [limits.per_type].
_KIND_ALIASES: Dict[str, UnitKind] = {
    "functions": UnitKind.FUNCTION,
    "structs": UnitKind.STRUCT,
    "enums": UnitKind.ENUM,
    "traits": UnitKind.TRAIT,
    "impl_blocks": UnitKind.IMPL,
    "impls": UnitKind.IMPL,
    "consts": UnitKind.CONST,
    "statics": UnitKind.STATIC,
    "type_aliases": UnitKind.TYPE_ALIAS,
    "macros": UnitKind.MACRO,
    "modules": UnitKind.MODULE,
}

_BOTH = tuple(Visibility)

# Flat weight keys; each sets every (kind, visibility) pair listed.
_FLAT_WEIGHT_KEYS: Dict[str, Tuple[WeightKey, ...]] = {
    "public_function": ((UnitKind.FUNCTION, Visibility.PUBLIC),),
    "private_function": (
        (UnitKind.FUNCTION, Visibility.PRIVATE),
        (UnitKind.MACRO, Visibility.PUBLIC),
        (UnitKind.MACRO, Visibility.PRIVATE),
    ),
    "public_struct": (
        (UnitKind.STRUCT, Visibility.PUBLIC),
        (UnitKind.ENUM, Visibility.PUBLIC),
    ),
    "private_struct": (
        (UnitKind.STRUCT, Visibility.PRIVATE),
        (UnitKind.ENUM, Visibility.PRIVATE),
    ),
    "impl_block": tuple((UnitKind.IMPL, v) for v in _BOTH),
    "trait_definition": tuple((UnitKind.TRAIT, v) for v in _BOTH),
    "const_static": tuple(
        (kind, v)
        for kind in (UnitKind.CONST, UnitKind.STATIC, UnitKind.TYPE_ALIAS, UnitKind.MODULE)
        for v in _BOTH
    ),
}


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    for name in CONFIG_FILENAMES:
        candidate = repo_root / name
        if candidate.is_file():
            return candidate
    return None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _parse_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Failed to parse {path}: top level must be a mapping")
    return data


def _parse_file(path: Path) -> Dict[str, Any]:
    if path.suffix.lower() in (".yaml", ".yml"):
        return _parse_yaml(path)
    return _parse_toml(path)


def _section(raw: Dict[str, Any], section: str) -> Dict[str, Any]:
    data = raw.get(section, {})
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"[{section}] must be a table")
    return data


def _build_section(raw: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a config section dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in _section(raw, section).items() if k in valid_fields}
    try:
        return cls(**filtered)
    except TypeError as exc:
        raise ConfigError(f"[{section}]: {exc}") from exc


def _parse_kind(name: str, where: str) -> UnitKind:
    if name in _KIND_ALIASES:
        return _KIND_ALIASES[name]
    try:
        return UnitKind(name)
    except ValueError:
        raise ConfigError(f"{where}: unknown unit kind '{name}'") from None


def _as_int(value: Any, where: str) -> int:
    # bool is an int subclass; `true` is never a valid count.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{where}: expected an integer, got {value!r}")
    return value


def _build_weights(raw: Dict[str, Any]) -> WeightsConfig:
    data = _section(raw, "weights")
    table: Dict[WeightKey, int] = dict(DEFAULT_WEIGHTS)
    default = _as_int(data.get("default", DEFAULT_WEIGHT), "weights.default")

    for key, value in data.items():
        if key == "default":
            continue
        if key in _FLAT_WEIGHT_KEYS:
            weight = _as_int(value, f"weights.{key}")
            for pair in _FLAT_WEIGHT_KEYS[key]:
                table[pair] = weight
            continue
        kind = _parse_kind(key, "weights")
        if isinstance(value, dict):
            for vis_name, vis_value in value.items():
                try:
                    visibility = Visibility(vis_name)
                except ValueError:
                    raise ConfigError(
                        f"weights.{key}: unknown visibility '{vis_name}'"
                    ) from None
                table[(kind, visibility)] = _as_int(vis_value, f"weights.{key}.{vis_name}")
        else:
            weight = _as_int(value, f"weights.{key}")
            for visibility in Visibility:
                table[(kind, visibility)] = weight

    return WeightsConfig(table=table, default=default)


def _build_limits(raw: Dict[str, Any]) -> LimitsConfig:
    data = _section(raw, "limits")
    limits = LimitsConfig()
    for name in ("max_prod_units", "max_weighted_score", "max_prod_lines"):
        if name in data:
            setattr(limits, name, _as_int(data[name], f"limits.{name}"))
    if "fail_on_exceed" in data:
        limits.fail_on_exceed = bool(data["fail_on_exceed"])

    per_kind = data.get("per_kind", data.get("per_type", {})) or {}
    if not isinstance(per_kind, dict):
        raise ConfigError("limits.per_kind must be a table")
    for key, value in per_kind.items():
        kind = _parse_kind(key, "limits.per_kind")
        limits.per_kind[kind] = _as_int(value, f"limits.per_kind.{key}")
    return limits


def _split_env_list(val: str) -> List[str]:
    sep = ":" if os.name != "nt" else ";"
    return [p.strip() for p in val.split(sep) if p.strip()]


def _env_int(name: str) -> Optional[int]:
    val = os.environ.get(name)
    if not val:
        return None
    try:
        return int(val)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {val!r}") from None


def _merge_env_overrides(cfg: DiffGateConfig) -> None:
    """Apply DIFFGATE_* environment variable overrides."""
    if val := os.environ.get("DIFFGATE_FORMAT"):
        if val not in OUTPUT_FORMATS:
            raise ConfigError(f"DIFFGATE_FORMAT: unknown format '{val}'")
        cfg.output.format = val  # type: ignore[assignment]
    if (score := _env_int("DIFFGATE_MAX_SCORE")) is not None:
        cfg.limits.max_weighted_score = score
    if (units := _env_int("DIFFGATE_MAX_UNITS")) is not None:
        cfg.limits.max_prod_units = units
    if (lines := _env_int("DIFFGATE_MAX_LINES")) is not None:
        cfg.limits.max_prod_lines = lines
    if val := os.environ.get("DIFFGATE_IGNORE_PATHS"):
        cfg.classification.ignore_paths.extend(_split_env_list(val))


def _check_strings(values: Iterable[Any], where: str) -> None:
    # A bare string would iterate as single characters.
    if not isinstance(values, (list, tuple)):
        raise ConfigError(f"{where}: expected a list of strings, got {values!r}")
    for value in values:
        if not isinstance(value, str):
            raise ConfigError(f"{where}: expected strings, got {value!r}")


def validate_config(cfg: DiffGateConfig) -> None:
    """Reject configurations the analysis cannot run with.

    Called after every merge step, so programmatic configs are checked the
    same way as file-loaded ones.
    """
    weights = cfg.weights
    if weights.default is None:
        raise ConfigError("weights.default is required")
    if weights.default < 0:
        raise ConfigError("weights.default must not be negative")
    for (kind, visibility), weight in weights.table.items():
        if weight < 0:
            raise ConfigError(
                f"weights.{kind.value}.{visibility.value} must not be negative"
            )

    limits = cfg.limits
    for name in ("max_prod_units", "max_weighted_score", "max_prod_lines"):
        value = getattr(limits, name)
        if value is not None and value <= 0:
            raise ConfigError(f"limits.{name} must be greater than 0")
    for kind, value in limits.per_kind.items():
        if not isinstance(kind, UnitKind):
            raise ConfigError(f"limits.per_kind: unknown unit kind '{kind}'")
        if value < 0:
            raise ConfigError(f"limits.per_kind.{kind.value} must not be negative")

    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(
            f"output.format must be one of {', '.join(OUTPUT_FORMATS)}; got '{cfg.output.format}'"
        )
    if cfg.analysis.on_access_error not in ACCESS_ERROR_POLICIES:
        raise ConfigError(
            f"analysis.on_access_error must be 'skip' or 'abort'; got '{cfg.analysis.on_access_error}'"
        )
    if cfg.analysis.workers < 1:
        raise ConfigError("analysis.workers must be at least 1")

    classification = cfg.classification
    for f in dataclasses.fields(classification):
        _check_strings(getattr(classification, f.name), f"classification.{f.name}")
    _check_strings(cfg.analysis.extensions, "analysis.extensions")


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> DiffGateConfig:
    """Load, validate, and return a DiffGateConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = DiffGateConfig()
    else:
        raw = _parse_file(config_path)
        cfg = DiffGateConfig(
            classification=_build_section(raw, ClassificationConfig, "classification"),
            weights=_build_weights(raw),
            limits=_build_limits(raw),
            analysis=_build_section(raw, AnalysisConfig, "analysis"),
            output=_build_section(raw, OutputConfig, "output"),
            source=str(config_path),
        )

    _merge_env_overrides(cfg)
    validate_config(cfg)
    return cfg

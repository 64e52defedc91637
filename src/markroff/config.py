"""Load conversion options from TOML, the environment and overrides."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional, Sequence

from .errors import MarkroffConfigError
from .options import (
    DEFAULT_MAX_NESTING,
    ConversionOptions,
    Feature,
    OutputFlag,
    OutputFormat,
)

__all__ = [
    "CONFIG_FILENAME",
    "CONFIG_ENV",
    "ENV_PREFIX",
    "OptionOverrides",
    "LoadResult",
    "load_options",
]

CONFIG_FILENAME = "markroff.toml"
CONFIG_ENV = "MARKROFF_CONFIG"
ENV_PREFIX = "MARKROFF_"

_DEFAULT_LOG_LEVEL = "INFO"
_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})
_FLAG_KEYS = {
    "typography": OutputFlag.TYPOGRAPHY,
    "skip_html": OutputFlag.SKIP_HTML,
    "escape_html": OutputFlag.ESCAPE_HTML,
    "hard_wrap": OutputFlag.HARD_WRAP,
}


@dataclass(frozen=True)
class OptionOverrides:
    """Caller-supplied values applied on top of file and environment."""

    format: Optional[OutputFormat] = None
    features: Optional[Sequence[Feature]] = None
    typography: Optional[bool] = None
    max_nesting: Optional[int] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    """Resolved options and where they came from."""

    options: ConversionOptions
    log_level: str
    config_path: Optional[Path]


def load_options(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[OptionOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
) -> LoadResult:
    """Resolve options with precedence overrides > env > TOML > defaults."""

    overrides = overrides or OptionOverrides()
    env_map = os.environ if env is None else env

    requested = _resolve_config_path(config_path, env_map)
    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested.exists():
        _apply_file(table, _read_config_file(requested))
        loaded_path = requested
    elif config_path is not None or _env_string(env_map, "CONFIG"):
        raise MarkroffConfigError(f"Config file not found: {requested}")

    output = table["output"]
    parser = table["parser"]

    fmt = _pick_first(
        overrides.format,
        _env_format(env_map),
        _file_format(output["format"]),
    )
    features = _pick_first(
        overrides.features,
        _env_features(env_map),
        _file_features(parser["features"]),
    )
    max_nesting = _pick_first(
        overrides.max_nesting,
        _env_int(env_map, "MAX_NESTING"),
        _file_int(parser["max_nesting"], "parser.max_nesting"),
    )
    flags = {
        flag
        for key, flag in _FLAG_KEYS.items()
        if _file_bool(output[key], f"output.{key}")
    }
    typography = _pick_first(
        overrides.typography, _env_bool(env_map, "TYPOGRAPHY")
    )
    if typography is True:
        flags.add(OutputFlag.TYPOGRAPHY)
    elif typography is False:
        flags.discard(OutputFlag.TYPOGRAPHY)

    log_level = _pick_first(
        overrides.log_level,
        _env_string(env_map, "LOG_LEVEL"),
        table["logging"]["level"],
    )
    if not isinstance(log_level, str) or not log_level.strip():
        raise MarkroffConfigError("logging.level must be a non-empty string.")

    options = ConversionOptions(
        format=fmt,
        features=frozenset(features),
        output_flags=frozenset(flags),
        max_nesting=max_nesting,
    )
    return LoadResult(
        options=options,
        log_level=log_level.strip().upper(),
        config_path=loaded_path,
    )


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "output": {
            "format": OutputFormat.HTML.value,
            "typography": False,
            "skip_html": False,
            "escape_html": False,
            "hard_wrap": False,
        },
        "parser": {
            "features": [],
            "max_nesting": DEFAULT_MAX_NESTING,
        },
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _read_config_file(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except IsADirectoryError as exc:
        raise MarkroffConfigError(
            f"markroff config path is a directory: {path}"
        ) from exc
    except OSError as exc:
        raise MarkroffConfigError(
            f"Cannot read markroff config {path}: {exc}"
        ) from exc
    except tomllib.TOMLDecodeError as exc:
        raise MarkroffConfigError(
            f"Failed to parse markroff config {path}: {exc}"
        ) from exc


def _apply_file(
    table: MutableMapping[str, MutableMapping[str, object]],
    document: Mapping[str, Any],
) -> None:
    """Copy file values over ``table``; every key must be a known option."""

    for section, values in document.items():
        if section not in table:
            raise MarkroffConfigError(
                f"Unknown markroff config section [{section}]."
            )
        if not isinstance(values, Mapping):
            raise MarkroffConfigError(
                f"Expected a [{section}] table, found "
                f"{type(values).__name__}."
            )
        defaults = table[section]
        for key, value in values.items():
            if key not in defaults:
                raise MarkroffConfigError(
                    f"Unknown markroff option '{section}.{key}'."
                )
            defaults[key] = value


def _resolve_config_path(
    config_path: Optional[Path], env_map: Mapping[str, str]
) -> Path:
    if config_path is not None:
        return Path(config_path).expanduser()
    env_candidate = _env_string(env_map, "CONFIG")
    if env_candidate:
        return Path(env_candidate).expanduser()
    xdg_home = env_map.get("XDG_CONFIG_HOME")
    base = Path(xdg_home) if xdg_home else Path.home() / ".config"
    return base / "markroff" / CONFIG_FILENAME


def _file_format(value: object) -> OutputFormat:
    if not isinstance(value, str):
        raise MarkroffConfigError("output.format must be a string.")
    return OutputFormat.from_value(value)


def _file_features(value: object) -> list[Feature]:
    if not isinstance(value, list) or not all(
        isinstance(item, str) for item in value
    ):
        raise MarkroffConfigError("parser.features must be a list of strings.")
    return [Feature.from_value(item) for item in value]


def _file_int(value: object, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MarkroffConfigError(f"{name} must be an integer.")
    return value


def _file_bool(value: object, name: str) -> bool:
    if not isinstance(value, bool):
        raise MarkroffConfigError(f"{name} must be true or false.")
    return value


def _env_format(env_map: Mapping[str, str]) -> Optional[OutputFormat]:
    raw = _env_string(env_map, "FORMAT")
    if raw is None:
        return None
    return OutputFormat.from_value(raw)


def _env_features(env_map: Mapping[str, str]) -> Optional[list[Feature]]:
    raw = _env_string(env_map, "FEATURES")
    if raw is None:
        return None
    return [
        Feature.from_value(part)
        for part in raw.replace(",", " ").split()
        if part
    ]


def _env_bool(env_map: Mapping[str, str], key: str) -> Optional[bool]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    lowered = raw.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise MarkroffConfigError(
        f"{ENV_PREFIX}{key} must be one of: "
        f"{', '.join(sorted(_TRUE | _FALSE))}."
    )


def _env_int(env_map: Mapping[str, str], key: str) -> Optional[int]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise MarkroffConfigError(
            f"{ENV_PREFIX}{key} must be an integer, got '{raw}'."
        ) from exc


def _env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None

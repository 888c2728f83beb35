"""Build options and builder configuration loading."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .files.filters import DEFAULT_STATIC_DIRECTORY
from .lambdas import DEFAULT_MAX_LAMBDA_SIZE, DEFAULT_RUNTIME
from .models import PackagingMode

AUTH_TOKEN_ENV = "NPM_AUTH_TOKEN"
DEFAULT_NCC_VERSION = "0.22.3"

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmg]?b?)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
}


class ConfigError(RuntimeError):
    """Raised when the builder configuration cannot be parsed."""


@dataclass(frozen=True)
class BuildOptions:
    """Explicit settings threaded through every build step."""

    auth_token: Optional[str] = None
    mode: Optional[PackagingMode] = None
    runtime: str = DEFAULT_RUNTIME
    max_lambda_size: int = DEFAULT_MAX_LAMBDA_SIZE
    static_directory: str = DEFAULT_STATIC_DIRECTORY
    max_workers: Optional[int] = None
    npm_executable: str = "npm"
    ncc_version: str = DEFAULT_NCC_VERSION


def parse_size(value: Any) -> int:
    """Convert ``5mb`` style sizes (or plain byte counts) to bytes."""
    if isinstance(value, bool):
        raise ConfigError(f"Invalid size: {value!r}")
    if isinstance(value, int):
        if value <= 0:
            raise ConfigError(f"Size must be positive: {value}")
        return value
    if not isinstance(value, str):
        raise ConfigError(f"Invalid size: {value!r}")
    match = _SIZE_PATTERN.match(value)
    if not match:
        raise ConfigError(f"Invalid size: {value!r}")
    number = float(match.group(1))
    unit = (match.group(2) or "").lower()
    size = int(number * _SIZE_UNITS[unit])
    if size <= 0:
        raise ConfigError(f"Size must be positive: {value!r}")
    return size


def load_options(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> BuildOptions:
    """Build :class:`BuildOptions` from an optional YAML file and an environment mapping.

    Only the mapping passed as ``env`` is consulted; callers decide whether
    that is ``os.environ``.
    """
    data: Dict[str, Any] = {}
    if config_path is not None:
        data = _read_config(config_path)

    environment = env or {}
    token = environment.get(AUTH_TOKEN_ENV) or None

    options: Dict[str, Any] = {"auth_token": token}
    if "maxLambdaSize" in data:
        options["max_lambda_size"] = parse_size(data["maxLambdaSize"])
    if "runtime" in data:
        options["runtime"] = _as_str(data["runtime"], "runtime")
    if "mode" in data and data["mode"] is not None:
        options["mode"] = _as_mode(data["mode"])
    if "staticDirectory" in data:
        options["static_directory"] = _as_str(data["staticDirectory"], "staticDirectory").strip("/")
    if "maxWorkers" in data and data["maxWorkers"] is not None:
        options["max_workers"] = _as_positive_int(data["maxWorkers"], "maxWorkers")
    if "npmExecutable" in data:
        options["npm_executable"] = _as_str(data["npmExecutable"], "npmExecutable")
    if "nccVersion" in data:
        options["ncc_version"] = _as_str(data["nccVersion"], "nccVersion")
    return BuildOptions(**options)


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    # Builder configs are often nested under `config:` as in now.json.
    nested = loaded.get("config")
    if isinstance(nested, dict):
        return nested
    return loaded


def _as_str(value: Any, key: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise ConfigError(f'"{key}" must be a non-empty string')


def _as_mode(value: Any) -> PackagingMode:
    try:
        return PackagingMode(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(mode.value for mode in PackagingMode)
        raise ConfigError(f'"mode" must be one of: {choices}') from exc


def _as_positive_int(value: Any, key: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    if isinstance(value, str) and value.strip().isdigit() and int(value) > 0:
        return int(value)
    raise ConfigError(f'"{key}" must be a positive integer')


__all__ = [
    "AUTH_TOKEN_ENV",
    "BuildOptions",
    "ConfigError",
    "load_options",
    "parse_size",
]

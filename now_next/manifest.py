"""package.json handling: entrypoint validation, parsing and normalization."""

from __future__ import annotations

import copy
import json
import posixpath
from pathlib import Path
from typing import Any, Dict, Mapping

from .errors import InvalidEntrypointError, ManifestError, MissingFrameworkVersionError

Manifest = Dict[str, Any]

MANIFEST_FILENAME = "package.json"
CONFIG_FILENAME = "next.config.js"
VALID_ENTRYPOINTS = (MANIFEST_FILENAME, CONFIG_FILENAME)

BUILD_SCRIPT = "now-build"
LEGACY_BUILD_COMMAND = "next build --lambdas"
MODERN_BUILD_COMMAND = "next build"

# Runtime packages a legacy lambda needs at request time.
REQUIRED_DEPENDENCIES: Mapping[str, str] = {
    "next-server": "v7.0.2-canary.49",
    "react": "^16.6.0",
    "react-dom": "^16.6.0",
}


def validate_entrypoint(entrypoint: str) -> None:
    """Reject entrypoints that are neither package.json nor next.config.js."""
    name = posixpath.basename(entrypoint.replace("\\", "/"))
    if name not in VALID_ENTRYPOINTS:
        raise InvalidEntrypointError(
            f'Specified "src" for "@now/next" has to be "{MANIFEST_FILENAME}" '
            f'or "{CONFIG_FILENAME}", got "{entrypoint}"'
        )


def read_manifest(path: Path) -> Manifest:
    """Load package.json from ``path``; a missing file yields an empty manifest."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Failed to parse {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"{path.name} must contain a JSON object at the root")
    return data


def write_manifest(directory: Path, manifest: Mapping[str, Any]) -> Path:
    target = directory / MANIFEST_FILENAME
    target.write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")
    return target


def _section(manifest: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = manifest.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ManifestError(f'"{key}" in {MANIFEST_FILENAME} must be an object')
    return value


def ensure_build_script(manifest: Mapping[str, Any], command: str) -> Manifest:
    """Return a copy of ``manifest`` with ``scripts['now-build']`` set when absent."""
    result = copy.deepcopy(dict(manifest))
    scripts = dict(_section(result, "scripts"))
    if BUILD_SCRIPT not in scripts:
        scripts[BUILD_SCRIPT] = command
    result["scripts"] = scripts
    return result


def normalize_manifest(
    manifest: Mapping[str, Any],
    *,
    build_command: str = LEGACY_BUILD_COMMAND,
    required: Mapping[str, str] = REQUIRED_DEPENDENCIES,
) -> Manifest:
    """Add the runtime dependencies and build script a legacy build relies on.

    Only absent keys are filled in. A required package the user declared in
    ``devDependencies`` is copied into ``dependencies`` with the user's own
    version so a production install keeps it.
    """
    result = copy.deepcopy(dict(manifest))
    dependencies = dict(_section(result, "dependencies"))
    dev_dependencies = _section(result, "devDependencies")

    for name, version in required.items():
        if name in dependencies:
            continue
        dependencies[name] = dev_dependencies.get(name, version)

    result["dependencies"] = dependencies
    return ensure_build_script(result, build_command)


def get_framework_version(manifest: Mapping[str, Any]) -> str:
    """Return the declared `next` version range."""
    for key in ("dependencies", "devDependencies"):
        version = _section(manifest, key).get("next")
        if isinstance(version, str) and version.strip():
            return version.strip()
    raise MissingFrameworkVersionError(
        f'No "next" version found in "dependencies" or "devDependencies" of {MANIFEST_FILENAME}'
    )


__all__ = [
    "BUILD_SCRIPT",
    "LEGACY_BUILD_COMMAND",
    "MANIFEST_FILENAME",
    "MODERN_BUILD_COMMAND",
    "Manifest",
    "REQUIRED_DEPENDENCIES",
    "VALID_ENTRYPOINTS",
    "ensure_build_script",
    "get_framework_version",
    "normalize_manifest",
    "read_manifest",
    "validate_entrypoint",
    "write_manifest",
]

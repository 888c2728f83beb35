"""Error taxonomy for now-next builds.

Configuration errors are fatal and never retried. External process failures
surface as :class:`CommandError` so callers may decide to retry the whole
build.
"""

from __future__ import annotations

from typing import Sequence


class BuildError(RuntimeError):
    """Base class for every terminal build failure."""


class InvalidPathError(BuildError, ValueError):
    """Raised when a file set key is absolute, empty or escapes its root."""


class InvalidEntrypointError(BuildError):
    """Raised when the entrypoint is not a manifest or framework config file."""


class ManifestError(BuildError):
    """Raised when package.json cannot be parsed."""


class MissingFrameworkVersionError(BuildError):
    """Raised when the manifest does not declare the `next` dependency."""


class InvalidVersionRangeError(BuildError):
    """Raised when the declared `next` version is not a valid semver range."""


class MissingBuildIdError(BuildError):
    """Raised when the build script did not produce `.next/BUILD_ID`."""


class NoServerlessPagesBuiltError(BuildError):
    """Raised when a modern build produced no serverless pages."""


class LambdaSizeExceededError(BuildError):
    """Raised when a packaged lambda is larger than its size budget."""

    def __init__(self, size: int, max_size: int) -> None:
        super().__init__(
            f"Lambda package is {size} bytes which exceeds the maximum of {max_size} bytes"
        )
        self.size = size
        self.max_size = max_size


class OutputCollisionError(BuildError):
    """Raised when a lambda and a static file resolve to the same output path."""

    def __init__(self, paths: Sequence[str]) -> None:
        joined = ", ".join(paths)
        super().__init__(f"Build outputs collide on: {joined}")
        self.paths = list(paths)


class CommandError(BuildError):
    """Raised when an external process (npm, ncc) fails."""

    def __init__(self, command: Sequence[str], returncode: int | None, stderr: str = "") -> None:
        rendered = " ".join(command)
        if returncode is None:
            message = f"Unable to run `{rendered}`"
        else:
            message = f"`{rendered}` failed with exit code {returncode}"
        tail = stderr.strip()
        if tail:
            message += f": {tail[-500:]}"
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr


__all__ = [
    "BuildError",
    "CommandError",
    "InvalidEntrypointError",
    "InvalidPathError",
    "InvalidVersionRangeError",
    "LambdaSizeExceededError",
    "ManifestError",
    "MissingBuildIdError",
    "MissingFrameworkVersionError",
    "NoServerlessPagesBuiltError",
    "OutputCollisionError",
]

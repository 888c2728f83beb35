"""Entry points invoked by the deployment platform: build and prepare_cache."""

from __future__ import annotations

import posixpath
import shutil
from pathlib import Path
from typing import Dict, Tuple

from .assembler import LambdaAssembler, Output
from .config import BuildOptions
from .driver import NPMRC_FILENAME, BuildDriver
from .errors import InvalidEntrypointError, InvalidPathError
from .files.filters import exclude, merge
from .files.fs import glob_files
from .logging import get_logger
from .manifest import validate_entrypoint
from .models import BuildContext, FileSet, normalize_path

CACHE_PATTERNS: Tuple[str, ...] = (
    "user/node_modules/**",
    "user/package-lock.json",
    "user/yarn.lock",
    "ncc/node_modules/**",
    "ncc/package-lock.json",
    "ncc/yarn.lock",
    "user/.next/records.json",
    "user/.next/server/records.json",
)


class Builder:
    """Coordinates the build driver and the lambda assembler."""

    def __init__(
        self,
        driver: BuildDriver | None = None,
        assembler: LambdaAssembler | None = None,
    ) -> None:
        self.driver = driver or BuildDriver()
        self.assembler = assembler or LambdaAssembler()
        self.logger = get_logger("builder")

    def build(self, context: BuildContext, options: BuildOptions | None = None) -> Dict[str, Output]:
        """Build the project and return lambdas and static files keyed by output path."""
        options = options or BuildOptions()
        self._validate(context)
        self.logger.info("Building %s", context.entrypoint)

        result = self.driver.run(context, options)
        assembly = self.assembler.assemble(result, context.entry_directory, options)
        outputs = assembly.outputs()
        self.logger.info(
            "Built %d lambdas and %d static files",
            len(assembly.lambdas),
            len(assembly.static_files),
        )
        return outputs

    def prepare_cache(
        self,
        context: BuildContext,
        cache_path: Path,
        options: BuildOptions | None = None,
    ) -> FileSet:
        """Rebuild into ``cache_path`` and return the files worth keeping for the next run."""
        options = options or BuildOptions()
        self._validate(context)

        work_path = Path(context.work_path)
        cache_root = Path(cache_path)
        self._remove_work_path(work_path, cache_root)

        cache_context = BuildContext(
            files=context.files,
            entrypoint=context.entrypoint,
            work_path=cache_root,
        )
        self.driver.run(cache_context, options)

        cache_files = merge(*(glob_files(pattern, cache_root) for pattern in CACHE_PATTERNS))
        cache_files = exclude(cache_files, lambda path: posixpath.basename(path) == NPMRC_FILENAME)
        self.logger.info("Prepared %d cache files", len(cache_files))
        return cache_files

    def _remove_work_path(self, work_path: Path, cache_root: Path) -> None:
        if not work_path.exists():
            return
        resolved = work_path.resolve()
        for protected in (Path.cwd().resolve(), cache_root.resolve()):
            if protected == resolved or resolved in protected.parents:
                raise InvalidPathError(
                    f"Refusing to remove work path {work_path}: it contains {protected}"
                )
        self.logger.info("Removing work path %s", work_path)
        shutil.rmtree(work_path)

    @staticmethod
    def _validate(context: BuildContext) -> None:
        validate_entrypoint(context.entrypoint)
        if normalize_path(context.entrypoint) not in context.files:
            raise InvalidEntrypointError(
                f'Entrypoint "{context.entrypoint}" is not part of the deployment files'
            )


__all__ = ["Builder", "CACHE_PATTERNS"]

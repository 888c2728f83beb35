"""Partition a finished build into per-route lambdas and static files."""

from __future__ import annotations

import posixpath
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Sequence, Tuple, Union

from .config import BuildOptions
from .driver import DriverResult
from .errors import MissingBuildIdError, NoServerlessPagesBuiltError, OutputCollisionError
from .files.filters import (
    exclude,
    merge,
    only_static_directory,
    prefix_paths,
    reparent,
    restrict_to_subtree,
    select_glob,
)
from .lambdas import DEFAULT_HANDLER, Lambda, create_lambda
from .logging import get_logger
from .manifest import CONFIG_FILENAME
from .models import FileRef, FileSet, PackagingMode
from .runtime import BRIDGE_FILENAME, LAUNCHER_FILENAME, PAGE_FILENAME, RuntimeAssets

BUILD_ID_PATH = ".next/BUILD_ID"
LEGACY_PAGES_TEMPLATE = ".next/server/static/{build_id}/pages"
SERVERLESS_PAGES_DIR = ".next/serverless/pages"
NEXT_STATIC_DIR = ".next/static"
NODE_MODULES_CACHE = "node_modules/.cache"

# Framework shells that only ever render as part of another page.
RESERVED_PAGES = ("_app.js", "_document.js", "_error.js")

_INDEX_SUFFIX = re.compile(r"(^|/)index$")

Output = Union[Lambda, FileRef]


@dataclass(frozen=True)
class AssemblyResult:
    """Lambdas and static files keyed by output path."""

    lambdas: Dict[str, Lambda]
    static_files: FileSet

    def outputs(self) -> Dict[str, Output]:
        """Merge lambdas and static files, refusing to overwrite either."""
        collisions = [path for path in self.static_files if path in self.lambdas]
        if collisions:
            raise OutputCollisionError(sorted(collisions))
        merged: Dict[str, Output] = dict(self.lambdas)
        merged.update(self.static_files)
        return merged


def route_output_path(page: str) -> str:
    """``about/index.js`` -> ``about/index``."""
    return re.sub(r"\.js$", "", page)


def route_path(page: str) -> str:
    """Route derived from a page file: ``index.js`` -> ``""``, ``about/index.js`` -> ``about``."""
    return _INDEX_SUFFIX.sub("", route_output_path(page))


def request_path(page: str) -> str:
    return f"/{route_path(page)}"


def _join_entry(entry_directory: str, path: str) -> str:
    if entry_directory in ("", "."):
        return path
    return posixpath.join(entry_directory, path)


class LambdaAssembler:
    """Packages routes into lambdas in either packaging mode."""

    def __init__(self, assets: RuntimeAssets | None = None) -> None:
        self.assets = assets or RuntimeAssets()
        self.logger = get_logger("assembler")

    def assemble(
        self,
        result: DriverResult,
        entry_directory: str,
        options: BuildOptions | None = None,
    ) -> AssemblyResult:
        options = options or BuildOptions()
        files = result.files_after_build
        build_id = self._read_build_id(files)
        self.logger.info("Preparing lambda files for build %s...", build_id)

        if result.mode is PackagingMode.LEGACY:
            jobs = self._legacy_jobs(result, build_id, options)
        else:
            jobs = self._modern_jobs(result, options)

        lambdas = self._run_jobs(jobs, entry_directory, options)
        static_files = self._static_files(result, entry_directory, options)
        return AssemblyResult(lambdas=lambdas, static_files=static_files)

    # ------------------------------------------------------------------
    # Internals

    @staticmethod
    def _read_build_id(files: Mapping[str, FileRef]) -> str:
        ref = files.get(BUILD_ID_PATH)
        if ref is None:
            raise MissingBuildIdError(
                'BUILD_ID not found in ".next". The "package.json" "now-build" script did not run "next build"'
            )
        build_id = ref.read_bytes().decode("utf-8").strip()
        if not build_id:
            raise MissingBuildIdError(f"{BUILD_ID_PATH} is empty")
        return build_id

    def _legacy_jobs(
        self, result: DriverResult, build_id: str, options: BuildOptions
    ) -> List[Tuple[str, Callable[[], Lambda]]]:
        files = result.files_after_build
        node_modules = exclude(
            select_glob(files, "node_modules/**"),
            lambda path: path == NODE_MODULES_CACHE or path.startswith(f"{NODE_MODULES_CACHE}/"),
        )
        shared_parts: List[Mapping[str, FileRef]] = [
            node_modules,
            select_glob(files, ".next/*"),
            select_glob(files, ".next/server/*"),
            {BRIDGE_FILENAME: self.assets.bridge()},
        ]
        if CONFIG_FILENAME in files:
            shared_parts.append({CONFIG_FILENAME: files[CONFIG_FILENAME]})
        shared_parts.append(result.launcher)
        shared = merge(*shared_parts)

        pages_dir = LEGACY_PAGES_TEMPLATE.format(build_id=build_id)
        pages = self._pages(files, pages_dir)
        reserved = FileSet(
            (f"{pages_dir}/{name}", files[f"{pages_dir}/{name}"])
            for name in RESERVED_PAGES
            if f"{pages_dir}/{name}" in files
        )

        def _job(page: str, ref: FileRef) -> Callable[[], Lambda]:
            def _package() -> Lambda:
                self.logger.info('Creating lambda for page: "%s"...', page)
                launcher = self.assets.legacy_launcher(request_path(page))
                lambda_files = merge(
                    shared,
                    reserved,
                    {f"{pages_dir}/{page}": ref},
                    {LAUNCHER_FILENAME: launcher},
                )
                created = self._create(lambda_files, options)
                self.logger.info('Created lambda for page: "%s"', page)
                return created

            return _package

        return [(page, _job(page, ref)) for page, ref in pages.items()]

    def _modern_jobs(
        self, result: DriverResult, options: BuildOptions
    ) -> List[Tuple[str, Callable[[], Lambda]]]:
        files = result.files_after_build
        pages = self._pages(files, SERVERLESS_PAGES_DIR)
        if not pages:
            raise NoServerlessPagesBuiltError(
                f"No serverless pages were built under {SERVERLESS_PAGES_DIR}. "
                'Make sure next.config.js sets target: "serverless"'
            )

        shared = merge(
            {
                BRIDGE_FILENAME: self.assets.bridge(),
                LAUNCHER_FILENAME: self.assets.launcher(),
            },
            result.launcher,
        )

        def _job(page: str, ref: FileRef) -> Callable[[], Lambda]:
            def _package() -> Lambda:
                self.logger.info('Creating lambda for page: "%s"...', page)
                created = self._create(merge(shared, {PAGE_FILENAME: ref}), options)
                self.logger.info('Created lambda for page: "%s"', page)
                return created

            return _package

        return [(page, _job(page, ref)) for page, ref in pages.items()]

    @staticmethod
    def _pages(files: Mapping[str, FileRef], pages_dir: str) -> FileSet:
        pages = select_glob(reparent(restrict_to_subtree(files, pages_dir), pages_dir), "**/*.js")
        return exclude(pages, lambda page: page in RESERVED_PAGES)

    @staticmethod
    def _create(files: FileSet, options: BuildOptions) -> Lambda:
        return create_lambda(
            files,
            handler=DEFAULT_HANDLER,
            runtime=options.runtime,
            max_size=options.max_lambda_size,
        )

    def _run_jobs(
        self,
        jobs: Sequence[Tuple[str, Callable[[], Lambda]]],
        entry_directory: str,
        options: BuildOptions,
    ) -> Dict[str, Lambda]:
        if not jobs:
            return {}
        with ThreadPoolExecutor(max_workers=options.max_workers, thread_name_prefix="now-next-lambda") as pool:
            futures = [(page, pool.submit(package)) for page, package in jobs]
            results = [(page, future.result()) for page, future in futures]

        lambdas: Dict[str, Lambda] = {}
        for page, created in results:
            lambdas[_join_entry(entry_directory, route_output_path(page))] = created
        return lambdas

    def _static_files(
        self, result: DriverResult, entry_directory: str, options: BuildOptions
    ) -> FileSet:
        files = result.files_after_build
        next_static = reparent(restrict_to_subtree(files, NEXT_STATIC_DIR), NEXT_STATIC_DIR)
        static_directory = only_static_directory(result.source_files, options.static_directory)
        return merge(
            prefix_paths(prefix_paths(next_static, "_next/static"), entry_directory),
            prefix_paths(static_directory, entry_directory),
        )


__all__ = [
    "AssemblyResult",
    "BUILD_ID_PATH",
    "LambdaAssembler",
    "RESERVED_PAGES",
    "request_path",
    "route_output_path",
    "route_path",
]

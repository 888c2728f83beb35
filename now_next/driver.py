"""Build driver: download, install, build and bundle a user project."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType
from typing import Callable, List, Optional, Tuple, Type

from .config import BuildOptions
from .errors import CommandError, InvalidPathError
from .files.filters import (
    LOCK_FILES,
    exclude_lock_files,
    exclude_static_directory,
    reparent,
    restrict_to_subtree,
)
from .files.fs import download, glob_files
from .logging import get_logger, log_step
from .manifest import (
    BUILD_SCRIPT,
    LEGACY_BUILD_COMMAND,
    MANIFEST_FILENAME,
    MODERN_BUILD_COMMAND,
    ensure_build_script,
    get_framework_version,
    normalize_manifest,
    read_manifest,
    write_manifest,
)
from .models import BuildContext, FileBlob, FileRef, FileSet, PackagingMode, normalize_path
from .runners.ncc import Bundler, NccBundler
from .runners.npm import NpmRunner
from .runtime import CUSTOM_LAUNCHER_NAMES
from .versions import select_packaging_mode

NPMRC_FILENAME = ".npmrc"
INSTALL_ARGS = ("--prefer-offline",)
PRODUCTION_INSTALL_ARGS = ("--prefer-offline", "--production")

USER_DIRNAME = "user"
NCC_DIRNAME = "ncc"

BundlerFactory = Callable[[Path], Bundler]


@dataclass(frozen=True)
class DriverResult:
    """Everything the assembler needs from a finished build."""

    user_path: Path
    mode: PackagingMode
    files_after_build: FileSet
    source_files: FileSet
    launcher: FileSet = field(default_factory=FileSet)


class RegistryCredentials:
    """Writes ``.npmrc`` with an auth token and guarantees its removal."""

    def __init__(self, directory: Path, token: Optional[str]) -> None:
        self.path = directory / NPMRC_FILENAME
        self.token = token
        self.logger = get_logger("driver")

    def __enter__(self) -> "RegistryCredentials":
        if self.token:
            self.logger.info("Found npm auth token, creating %s", NPMRC_FILENAME)
            self.path.write_text(
                f"//registry.npmjs.org/:_authToken={self.token}\n", encoding="utf-8"
            )
        return self

    def discard(self) -> None:
        if self.token:
            self.path.unlink(missing_ok=True)

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.discard()


class BuildDriver:
    """Runs the external build steps for one project, in order."""

    def __init__(
        self,
        npm: NpmRunner | None = None,
        bundler_factory: BundlerFactory | None = None,
    ) -> None:
        self.npm = npm
        self._bundler_factory = bundler_factory
        self.logger = get_logger("driver")

    def run(self, context: BuildContext, options: BuildOptions | None = None) -> DriverResult:
        options = options or BuildOptions()
        npm = self.npm or NpmRunner(executable=options.npm_executable)
        work_path = Path(context.work_path)
        user_path = work_path / USER_DIRNAME
        entry_directory = context.entry_directory

        self.logger.info("Downloading user files...")
        entry_files = reparent(restrict_to_subtree(context.files, entry_directory), entry_directory)
        source_files = exclude_lock_files(entry_files)
        build_files = exclude_static_directory(source_files, options.static_directory)
        downloaded = download(build_files, user_path)

        manifest = read_manifest(user_path / MANIFEST_FILENAME)
        mode = options.mode or select_packaging_mode(get_framework_version(manifest))
        self.logger.info("Packaging in %s mode", mode.value)

        if mode is PackagingMode.LEGACY:
            self._remove_lock_files(user_path)
            manifest = normalize_manifest(manifest, build_command=LEGACY_BUILD_COMMAND)
        else:
            manifest = ensure_build_script(manifest, MODERN_BUILD_COMMAND)
        self.logger.debug("Normalized %s: %s", MANIFEST_FILENAME, manifest)
        write_manifest(user_path, manifest)

        with RegistryCredentials(user_path, options.auth_token) as credentials:
            with log_step(self.logger, "Running npm install for user..."):
                npm.install(user_path, INSTALL_ARGS)
            if mode is PackagingMode.MODERN:
                credentials.discard()

            with log_step(self.logger, "Running user script..."):
                npm.run_script(user_path, BUILD_SCRIPT)

            launcher = self._bundle_custom_launcher(downloaded, work_path, npm, options)

            if mode is PackagingMode.LEGACY:
                with log_step(self.logger, "Running npm install --production for user..."):
                    npm.install(user_path, PRODUCTION_INSTALL_ARGS)

        files_after_build = glob_files("**", user_path)
        return DriverResult(
            user_path=user_path,
            mode=mode,
            files_after_build=files_after_build,
            source_files=source_files,
            launcher=launcher,
        )

    def _remove_lock_files(self, user_path: Path) -> None:
        for name in sorted(LOCK_FILES):
            target = user_path / name
            try:
                target.unlink()
            except FileNotFoundError:
                self.logger.debug("No %s to remove", name)
            except OSError as exc:
                self.logger.warning("Could not remove %s: %s", target, exc)
            else:
                self.logger.info("Removed %s to force a fresh dependency resolution", name)

    def _bundle_custom_launcher(
        self,
        downloaded: FileSet,
        work_path: Path,
        npm: NpmRunner,
        options: BuildOptions,
    ) -> FileSet:
        name = next((candidate for candidate in CUSTOM_LAUNCHER_NAMES if candidate in downloaded), None)
        if name is None:
            return FileSet()

        self.logger.info("Compiling %s with ncc...", name)
        bundler = self._create_bundler(work_path, npm, options)
        source = downloaded[name]
        result = bundler(Path(source.fs_path))  # type: ignore[union-attr]

        entries: List[Tuple[str, FileRef]] = [(name, FileBlob.from_text(result.code))]
        for asset_name, content in result.assets.items():
            entries.append((self._asset_path(name, asset_name), FileBlob(data=content)))
        return FileSet(entries)

    @staticmethod
    def _asset_path(name: str, asset_name: str) -> str:
        # Assets sit beside the bundled launcher at the lambda root.
        try:
            return normalize_path(asset_name)
        except InvalidPathError as exc:
            raise CommandError(
                ["ncc", "build", name],
                0,
                f"asset {asset_name!r} resolves outside the lambda root",
            ) from exc

    def _create_bundler(self, work_path: Path, npm: NpmRunner, options: BuildOptions) -> Bundler:
        ncc_path = work_path / NCC_DIRNAME
        if self._bundler_factory is not None:
            return self._bundler_factory(ncc_path)
        return NccBundler(npm, ncc_path, version=options.ncc_version)


__all__ = [
    "BuildDriver",
    "DriverResult",
    "INSTALL_ARGS",
    "NPMRC_FILENAME",
    "PRODUCTION_INSTALL_ARGS",
    "RegistryCredentials",
]

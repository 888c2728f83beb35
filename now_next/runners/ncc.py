"""ncc bundler wrapper that collapses a module graph into a single file."""

from __future__ import annotations

import json
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Sequence

from ..errors import CommandError
from ..files.fs import glob_files
from ..logging import get_logger
from .npm import NpmRunner

Runner = Callable[..., None]


@dataclass(frozen=True)
class BundleResult:
    """Output of a bundler run."""

    code: str
    assets: Dict[str, bytes] = field(default_factory=dict)


Bundler = Callable[[Path], BundleResult]


class NccBundler:
    """Installs ``@zeit/ncc`` into its own directory on first use and runs it."""

    PACKAGE = "@zeit/ncc"

    def __init__(
        self,
        npm: NpmRunner,
        work_path: Path,
        *,
        version: str = "0.22.3",
        runner: Runner | None = None,
    ) -> None:
        self.npm = npm
        self.work_path = Path(work_path)
        self.version = version
        self._runner = runner or self._default_runner
        self._prepared = False
        self.logger = get_logger("ncc")

    @property
    def executable(self) -> Path:
        return self.work_path / "node_modules" / ".bin" / "ncc"

    def prepare(self) -> None:
        if self._prepared:
            return
        self.logger.info("Installing %s@%s", self.PACKAGE, self.version)
        self.work_path.mkdir(parents=True, exist_ok=True)
        manifest = {"dependencies": {self.PACKAGE: self.version}}
        (self.work_path / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
        self.npm.install(self.work_path, ["--prefer-offline"])
        self._prepared = True

    def __call__(self, entry: Path) -> BundleResult:
        return self.bundle(entry)

    def bundle(self, entry: Path) -> BundleResult:
        """Compile ``entry`` and its imports into a single script."""
        self.prepare()
        with tempfile.TemporaryDirectory(prefix="ncc-") as out_dir:
            command = [str(self.executable), "build", str(entry), "-o", out_dir]
            self.logger.debug("Running %s", " ".join(command))
            self._runner(command, cwd=entry.parent)

            outputs = glob_files("**", out_dir)
            if "index.js" not in outputs:
                raise CommandError(command, 0, "ncc did not produce index.js")
            code = outputs["index.js"].read_bytes().decode("utf-8")
            assets = {
                path: ref.read_bytes() for path, ref in outputs.items() if path != "index.js"
            }
        return BundleResult(code=code, assets=assets)

    @staticmethod
    def _default_runner(args: Sequence[str], *, cwd: Path) -> None:
        try:
            subprocess.run(
                list(args),
                cwd=str(cwd),
                check=True,
                text=True,
                capture_output=True,
            )
        except FileNotFoundError as exc:
            raise CommandError(args, None, str(exc)) from exc
        except subprocess.CalledProcessError as exc:
            raise CommandError(args, exc.returncode, exc.stderr or "") from exc


__all__ = ["BundleResult", "Bundler", "NccBundler"]

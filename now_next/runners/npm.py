"""npm wrappers for dependency installation and package.json scripts."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, Sequence

from ..errors import CommandError
from ..logging import get_logger
from ..manifest import MANIFEST_FILENAME, read_manifest

Runner = Callable[..., None]


class NpmRunner:
    """Runs npm inside a project directory."""

    def __init__(self, executable: str = "npm", runner: Runner | None = None) -> None:
        self.executable = executable
        self._runner = runner or self._default_runner
        self.logger = get_logger("npm")

    def install(self, directory: Path, args: Sequence[str] = ()) -> None:
        """Run ``npm install`` with ``args`` in ``directory``."""
        command = [self.executable, "install", *args]
        self.logger.info("Running %s in %s", " ".join(command), directory)
        self._run(command, cwd=directory)

    def run_script(self, directory: Path, name: str) -> bool:
        """Run the package.json script ``name``; returns False when it is not declared."""
        manifest = read_manifest(directory / MANIFEST_FILENAME)
        scripts = manifest.get("scripts")
        if not isinstance(scripts, dict) or name not in scripts:
            self.logger.info('No "%s" script in %s, skipping', name, MANIFEST_FILENAME)
            return False
        command = [self.executable, "run", name]
        self.logger.info("Running %s in %s", " ".join(command), directory)
        self._run(command, cwd=directory)
        return True

    def _run(self, args: Iterable[str], *, cwd: Path) -> None:
        self._runner(list(args), cwd=cwd)

    @staticmethod
    def _default_runner(args: Sequence[str], *, cwd: Path) -> None:
        try:
            subprocess.run(
                list(args),
                cwd=str(cwd),
                check=True,
                text=True,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise CommandError(args, None, str(exc)) from exc
        except subprocess.CalledProcessError as exc:
            raise CommandError(args, exc.returncode, exc.stderr or "") from exc


__all__ = ["NpmRunner"]

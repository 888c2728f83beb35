"""Fake npm and ncc processes that imitate their on-disk side effects."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Sequence, Tuple

from now_next.errors import CommandError
from now_next.runners.ncc import BundleResult


def legacy_build_output(build_id: str, pages: Sequence[str]) -> Dict[str, str]:
    """Files `next build --lambdas` leaves behind for ``pages``."""
    pages_dir = f".next/server/static/{build_id}/pages"
    outputs = {
        ".next/BUILD_ID": build_id,
        ".next/build-manifest.json": "{}",
        ".next/records.json": "{}",
        ".next/server/pages-manifest.json": "{}",
        ".next/static/chunks/main.js": "// main chunk",
        f"{pages_dir}/_app.js": "// app",
        f"{pages_dir}/_document.js": "// document",
        f"{pages_dir}/_error.js": "// error",
    }
    for page in pages:
        outputs[f"{pages_dir}/{page}"] = f"// page {page}"
    return outputs


def modern_build_output(build_id: str, pages: Sequence[str]) -> Dict[str, str]:
    """Files a serverless `next build` leaves behind for ``pages``."""
    outputs = {
        ".next/BUILD_ID": build_id,
        ".next/static/chunks/main.js": "// main chunk",
        ".next/serverless/pages/_app.js": "// app",
        ".next/serverless/pages/_document.js": "// document",
        ".next/serverless/pages/_error.js": "// error",
    }
    for page in pages:
        outputs[f".next/serverless/pages/{page}"] = f"// serverless page {page}"
    return outputs


class FakeNpmProcess:
    """Stands in for the npm binary; pass as ``NpmRunner(runner=...)``."""

    def __init__(
        self,
        build_outputs: Mapping[str, str] | None = None,
        *,
        fail_on: Sequence[str] | None = None,
    ) -> None:
        self.build_outputs = dict(build_outputs or {})
        self.fail_on = list(fail_on) if fail_on is not None else None
        self.calls: List[Tuple[List[str], Path]] = []
        self.npmrc_present: List[bool] = []

    def __call__(self, args: Sequence[str], *, cwd: Path) -> None:
        command = list(args)
        directory = Path(cwd)
        self.calls.append((command, directory))
        self.npmrc_present.append((directory / ".npmrc").exists())

        if self.fail_on is not None and command[1:] == self.fail_on:
            raise CommandError(command, 1, "simulated failure")

        if command[1] == "install":
            self._install(directory, production="--production" in command)
        elif command[1:] == ["run", "now-build"]:
            self._write(directory, self.build_outputs)

    def commands(self) -> List[List[str]]:
        return [command[1:] for command, _ in self.calls]

    def _install(self, directory: Path, *, production: bool) -> None:
        self._write(
            directory,
            {
                "node_modules/react/index.js": "module.exports = {};",
                "node_modules/.cache/build/state.json": "{}",
                "package-lock.json": "{}",
            },
        )
        dev_only = directory / "node_modules" / "dev-only" / "index.js"
        if production:
            dev_only.unlink(missing_ok=True)
        else:
            self._write(directory, {"node_modules/dev-only/index.js": "// dev"})

    @staticmethod
    def _write(directory: Path, files: Mapping[str, str]) -> None:
        for relative, content in files.items():
            target = directory / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")


class FakeBundler:
    """Stands in for ncc; records its inputs and returns canned output."""

    def __init__(self, code: str = "// bundled launcher", assets: Mapping[str, bytes] | None = None) -> None:
        self.code = code
        self.assets = dict(assets or {})
        self.inputs: List[Path] = []
        self.work_paths: List[Path] = []

    def factory(self, work_path: Path) -> "FakeBundler":
        self.work_paths.append(work_path)
        return self

    def __call__(self, entry: Path) -> BundleResult:
        self.inputs.append(entry)
        return BundleResult(code=self.code, assets=dict(self.assets))


__all__ = [
    "FakeBundler",
    "FakeNpmProcess",
    "legacy_build_output",
    "modern_build_output",
]

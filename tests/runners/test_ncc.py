"""Tests for the ncc bundler wrapper."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from now_next.errors import CommandError
from now_next.runners.ncc import NccBundler
from now_next.runners.npm import NpmRunner
from tests._fixtures.fake_tools import FakeNpmProcess


def _fake_ncc(outputs):
    calls = []

    def runner(args, cwd):
        calls.append((list(args), Path(cwd)))
        out_dir = Path(args[args.index("-o") + 1])
        for relative, content in outputs.items():
            target = out_dir / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)

    return runner, calls


def test_bundle_installs_ncc_once_and_collects_outputs(tmp_path: Path) -> None:
    npm_process = FakeNpmProcess()
    runner, calls = _fake_ncc({"index.js": b"// bundled", "assets/data.bin": b"\x00\x01"})
    work_path = tmp_path / "ncc"
    bundler = NccBundler(NpmRunner(runner=npm_process), work_path, version="0.20.0", runner=runner)
    entry = tmp_path / "user" / "now.launcher.js"
    entry.parent.mkdir()
    entry.write_text("module.exports = {};", encoding="utf-8")

    first = bundler(entry)
    second = bundler.bundle(entry)

    assert first == second
    assert first.code == "// bundled"
    assert first.assets == {"assets/data.bin": b"\x00\x01"}
    assert npm_process.commands() == [["install", "--prefer-offline"]]
    manifest = json.loads((work_path / "package.json").read_text(encoding="utf-8"))
    assert manifest == {"dependencies": {"@zeit/ncc": "0.20.0"}}

    command, cwd = calls[0]
    assert command[:3] == [str(work_path / "node_modules" / ".bin" / "ncc"), "build", str(entry)]
    assert cwd == entry.parent


def test_bundle_fails_without_index_output(tmp_path: Path) -> None:
    runner, _ = _fake_ncc({"other.js": b""})
    bundler = NccBundler(NpmRunner(runner=FakeNpmProcess()), tmp_path / "ncc", runner=runner)
    entry = tmp_path / "now.launcher.js"
    entry.write_text("", encoding="utf-8")

    with pytest.raises(CommandError):
        bundler(entry)

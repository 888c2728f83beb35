"""End-to-end tests for build and prepare_cache with fake npm and ncc."""

from __future__ import annotations

from pathlib import Path

import pytest

from now_next.builder import Builder
from now_next.config import BuildOptions
from now_next.driver import BuildDriver
from now_next.errors import InvalidEntrypointError, InvalidPathError, OutputCollisionError
from now_next.lambdas import Lambda
from now_next.models import BuildContext
from now_next.runners.npm import NpmRunner
from tests._fixtures.fake_tools import (
    FakeBundler,
    FakeNpmProcess,
    legacy_build_output,
    modern_build_output,
)


def _builder(npm_process: FakeNpmProcess) -> Builder:
    driver = BuildDriver(npm=NpmRunner(runner=npm_process), bundler_factory=FakeBundler().factory)
    return Builder(driver=driver)


def test_modern_build_returns_lambdas_and_static_files(project_builder) -> None:
    project_builder.write_manifest({"dependencies": {"next": "canary"}})
    project_builder.write(
        {
            "pages/index.js": "export default () => 'home'",
            "pages/about.js": "export default () => 'about'",
            "static/logo.png": "png",
        }
    )
    npm_process = FakeNpmProcess(modern_build_output("build-1", ["index.js", "about.js"]))

    outputs = _builder(npm_process).build(project_builder.context())

    lambdas = {path for path, output in outputs.items() if isinstance(output, Lambda)}
    assert lambdas == {"index", "about"}
    assert "_next/static/chunks/main.js" in outputs
    assert outputs["static/logo.png"].read_bytes() == b"png"


def test_legacy_build_renders_routes(project_builder) -> None:
    project_builder.write_manifest({"dependencies": {"next": "7.0.0"}})
    project_builder.write({"pages/about.js": "export default () => 'about'"})
    npm_process = FakeNpmProcess(legacy_build_output("abc123", ["index.js", "about.js"]))

    outputs = _builder(npm_process).build(project_builder.context())

    about = outputs["about"]
    assert isinstance(about, Lambda)
    shim = about.files["now__launcher.js"].read_bytes().decode("utf-8")
    assert '"/about"' in shim
    assert "node_modules/dev-only/index.js" not in about.files


def test_build_rejects_unknown_entrypoint(project_builder) -> None:
    project_builder.write_manifest({"dependencies": {"next": "canary"}})
    project_builder.write({"index.js": "module.exports = {};"})
    npm_process = FakeNpmProcess()

    with pytest.raises(InvalidEntrypointError):
        _builder(npm_process).build(project_builder.context("index.js"))
    with pytest.raises(InvalidEntrypointError):
        _builder(npm_process).build(project_builder.context("app/package.json"))

    assert npm_process.calls == []


def test_build_fails_when_route_and_static_file_collide(project_builder) -> None:
    project_builder.write_manifest({"dependencies": {"next": "canary"}})
    project_builder.write({"static/about": "asset"})
    npm_process = FakeNpmProcess(modern_build_output("build-1", ["static/about.js"]))

    with pytest.raises(OutputCollisionError):
        _builder(npm_process).build(project_builder.context())


def test_prepare_cache_keeps_install_artifacts_without_credentials(
    project_builder, tmp_path: Path
) -> None:
    project_builder.write_manifest({"dependencies": {"next": "7.0.0"}})
    npm_process = FakeNpmProcess(legacy_build_output("abc123", ["index.js"]))
    project_builder.work_path.mkdir()
    (project_builder.work_path / "stale.txt").write_text("old", encoding="utf-8")
    cache_path = tmp_path / "cache"

    cache_files = _builder(npm_process).prepare_cache(
        project_builder.context(), cache_path, BuildOptions(auth_token="secret")
    )

    assert not project_builder.work_path.exists()
    assert "user/node_modules/react/index.js" in cache_files
    assert "user/package-lock.json" in cache_files
    assert "user/.next/records.json" in cache_files
    assert "user/.next/BUILD_ID" not in cache_files
    assert not any(path.endswith(".npmrc") for path in cache_files)
    assert all(Path(ref.fs_path).is_relative_to(cache_path) for ref in cache_files.values())


def test_build_context_requires_an_explicit_work_path(project_builder) -> None:
    with pytest.raises(TypeError):
        BuildContext(files=project_builder.files(), entrypoint="package.json")  # type: ignore[call-arg]


def test_prepare_cache_never_removes_the_current_directory(
    project_builder, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    project_builder.write_manifest({"dependencies": {"next": "7.0.0"}})
    checkout = tmp_path / "checkout"
    checkout.mkdir()
    (checkout / "important.txt").write_text("keep me", encoding="utf-8")
    monkeypatch.chdir(checkout)
    npm_process = FakeNpmProcess(legacy_build_output("abc123", ["index.js"]))
    context = BuildContext(files=project_builder.files(), entrypoint="package.json", work_path=checkout)

    with pytest.raises(InvalidPathError):
        _builder(npm_process).prepare_cache(context, tmp_path / "cache")

    assert (checkout / "important.txt").read_text(encoding="utf-8") == "keep me"
    assert npm_process.calls == []


def test_prepare_cache_refuses_work_path_holding_the_cache(project_builder, tmp_path: Path) -> None:
    project_builder.write_manifest({"dependencies": {"next": "7.0.0"}})
    project_builder.work_path.mkdir()
    context = project_builder.context()

    with pytest.raises(InvalidPathError):
        _builder(FakeNpmProcess()).prepare_cache(context, project_builder.work_path / "cache")

    assert project_builder.work_path.is_dir()

"""Tests for the runtime glue files."""

from __future__ import annotations

from pathlib import Path

from now_next.models import FileFsRef
from now_next.runtime import LAUNCHER_CONFIG_MODULE, LAUNCHER_MODULE, RuntimeAssets


def _split_contracts(shim: str) -> tuple[str, str]:
    """Return the launcher-module branch and the config-module branch of a shim."""
    launcher_branch, _, config_branch = shim.partition("} else {")
    return launcher_branch, config_branch


def test_bundled_assets_resolve() -> None:
    assets = RuntimeAssets()

    bridge = assets.bridge()
    assert isinstance(bridge, FileFsRef)
    assert b"class Bridge" in bridge.read_bytes()
    launcher = assets.launcher().read_bytes().decode("utf-8")
    assert "require('./page.js')" in launcher


def test_legacy_launcher_gives_each_custom_module_its_own_contract() -> None:
    shim = RuntimeAssets().legacy_launcher("/about").read_bytes().decode("utf-8")
    launcher_branch, config_branch = _split_contracts(shim)

    assert f'const customLauncher = optionalRequire("./{LAUNCHER_MODULE}");' in launcher_branch
    assert "const launcher = customLauncher.launcher || customLauncher;" in launcher_branch
    assert LAUNCHER_CONFIG_MODULE not in launcher_branch

    assert f'optionalRequire("./{LAUNCHER_CONFIG_MODULE}")' in config_branch
    assert "app = config.app(app) || app;" in config_branch
    assert "config.server(base)" in config_branch
    assert "launcher(" not in config_branch


def test_modern_launcher_applies_only_the_server_hook() -> None:
    shim = RuntimeAssets().launcher().read_bytes().decode("utf-8")
    launcher_branch, config_branch = _split_contracts(shim)

    assert f'optionalRequire("./{LAUNCHER_MODULE}")' in launcher_branch
    assert f'optionalRequire("./{LAUNCHER_CONFIG_MODULE}")' in config_branch
    assert "config.server(base)" in config_branch
    assert "config.app" not in shim


def test_missing_modules_inside_custom_launchers_are_not_swallowed() -> None:
    assets = RuntimeAssets()
    for shim in (assets.launcher(), assets.legacy_launcher("/")):
        text = shim.read_bytes().decode("utf-8")
        assert "err.code === 'MODULE_NOT_FOUND' && err.message.includes(`'${request}'`)" in text
        assert "throw err;" in text


def test_legacy_launcher_embeds_pathname_as_string_literal() -> None:
    shim = RuntimeAssets().legacy_launcher('/quote"d').read_bytes().decode("utf-8")

    assert 'const pathname = "/quote\\"d";' in shim


def test_assets_can_come_from_another_directory(tmp_path: Path) -> None:
    (tmp_path / "bridge.js").write_text("// custom bridge", encoding="utf-8")
    (tmp_path / "legacy_launcher.js.j2").write_text("render({{ pathname | tojson }})", encoding="utf-8")

    assets = RuntimeAssets(tmp_path)

    assert assets.bridge().read_bytes() == b"// custom bridge"
    assert assets.legacy_launcher("/about").read_bytes() == b'render("/about")'

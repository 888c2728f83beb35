"""Files shipped inside every lambda: the bridge shim and the launchers."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from ..models import FileBlob, FileFsRef

BRIDGE_FILENAME = "now__bridge.js"
LAUNCHER_FILENAME = "now__launcher.js"
PAGE_FILENAME = "page.js"

# Optional user modules shipped next to the manifest. The launcher module owns
# the server; the config module only exports `app` and `server` hooks.
LAUNCHER_MODULE = "now.launcher.js"
LAUNCHER_CONFIG_MODULE = "launcher.config.js"
CUSTOM_LAUNCHER_NAMES = (LAUNCHER_MODULE, LAUNCHER_CONFIG_MODULE)

_TEMPLATES_DIR = Path(__file__).with_name("templates")


class RuntimeAssets:
    """Resolves the runtime glue files from a templates directory."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = Path(templates_dir or _TEMPLATES_DIR)
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            keep_trailing_newline=True,
        )

    def bridge(self) -> FileFsRef:
        return FileFsRef.from_path(self.templates_dir / "bridge.js")

    def legacy_launcher(self, pathname: str) -> FileBlob:
        """Render the launcher that renders the page at ``pathname`` with next-server."""
        return self._render("legacy_launcher.js.j2", pathname=pathname)

    def launcher(self) -> FileBlob:
        """Render the launcher that dispatches to a self-contained serverless page."""
        return self._render("launcher.js.j2")

    def _render(self, name: str, **context: str) -> FileBlob:
        template = self._env.get_template(name)
        return FileBlob.from_text(
            template.render(
                launcher_module=LAUNCHER_MODULE,
                config_module=LAUNCHER_CONFIG_MODULE,
                **context,
            )
        )


__all__ = [
    "BRIDGE_FILENAME",
    "CUSTOM_LAUNCHER_NAMES",
    "LAUNCHER_CONFIG_MODULE",
    "LAUNCHER_MODULE",
    "LAUNCHER_FILENAME",
    "PAGE_FILENAME",
    "RuntimeAssets",
]

"""CLI entrypoints for now-next builds."""

from __future__ import annotations

import argparse
import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Mapping

from .builder import Builder
from .config import ConfigError, load_options
from .errors import BuildError
from .files.fs import glob_files
from .lambdas import Lambda
from .logging import configure_logging
from .models import BuildContext, FileBlob, FileRef


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    parser.add_argument(
        "entrypoint",
        help="Path of package.json or next.config.js relative to the source directory.",
    )
    parser.add_argument(
        "--source",
        default=".",
        help="Directory holding the deployment files (defaults to current directory).",
    )
    parser.add_argument(
        "--work-path",
        default=None,
        help="Scratch directory for the build (defaults to a temporary directory).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML file with builder config (maxLambdaSize, runtime, mode, ...).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="now-next",
        description="Build a Next.js project into serverless lambdas and static files.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Install, build and package the project.",
    )
    _add_common_options(build_parser)
    build_parser.add_argument(
        "--output",
        default=None,
        help="Directory to write lambda zips and static files to.",
    )

    cache_parser = subparsers.add_parser(
        "prepare-cache",
        help="Produce the install artifacts worth caching for the next build.",
    )
    _add_common_options(cache_parser)
    cache_parser.add_argument(
        "--cache-path",
        required=True,
        help="Writable directory the cache is built in.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for now-next commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        options = load_options(
            Path(args.config) if args.config else None,
            env=os.environ,
        )
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    source = Path(args.source).expanduser().resolve()
    if not source.is_dir():
        parser.exit(1, f"Source directory not found: {source}\n")
    files = glob_files("**", source)

    with tempfile.TemporaryDirectory(prefix="now-next-") as scratch:
        work_path = Path(args.work_path).expanduser() if args.work_path else Path(scratch)
        context = BuildContext(files=files, entrypoint=args.entrypoint, work_path=work_path)
        builder = Builder()

        if args.command == "build":
            try:
                outputs = builder.build(context, options)
            except BuildError as exc:
                parser.exit(1, f"now-next build failed: {exc}\nRun with --verbose for more details.\n")
            if args.output:
                _write_outputs(outputs, Path(args.output))
            _print_summary(outputs)
        elif args.command == "prepare-cache":
            try:
                cache_files = builder.prepare_cache(context, Path(args.cache_path), options)
            except BuildError as exc:
                parser.exit(1, f"now-next prepare-cache failed: {exc}\nRun with --verbose for more details.\n")
            print(f"{len(cache_files)} files ready to cache")
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")


def _write_outputs(outputs: Mapping[str, Lambda | FileRef], destination: Path) -> None:
    for output_path, output in outputs.items():
        if isinstance(output, Lambda):
            target = destination / f"{output_path}.zip"
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(output.zip_buffer)
            continue
        target = destination / output_path
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(output, FileBlob):
            target.write_bytes(output.data)
        else:
            shutil.copyfile(output.fs_path, target)


def _print_summary(outputs: Mapping[str, Lambda | FileRef]) -> None:
    lambdas = {path: output for path, output in outputs.items() if isinstance(output, Lambda)}
    for path, created in sorted(lambdas.items()):
        print(f"lambda  {path}  {created.size} bytes  {created.runtime}  {created.handler}")
    static_count = len(outputs) - len(lambdas)
    print(f"{len(lambdas)} lambdas, {static_count} static files")


if __name__ == "__main__":
    main(sys.argv[1:])

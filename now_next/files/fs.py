"""Bridges between file sets and the local filesystem."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Iterator, List, Mapping, Tuple

from ..logging import get_logger
from ..models import FileBlob, FileFsRef, FileRef, FileSet
from .filters import compile_glob

logger = get_logger("files")


def _iter_files(root: Path) -> Iterator[Tuple[str, Path]]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""
        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            yield rel_path, current_dir / filename


def glob_files(pattern: str, root: Path | str) -> FileSet:
    """Return the files under ``root`` matching ``pattern``, sorted by path, as on-disk references."""
    root_path = Path(root)
    if not root_path.is_dir():
        return FileSet()

    regex = compile_glob(pattern)
    entries: List[Tuple[str, FileRef]] = []
    for rel_path, path in _iter_files(root_path):
        if regex.match(rel_path) is None:
            continue
        if not path.is_file():
            continue
        entries.append((rel_path, FileFsRef.from_path(path)))
    entries.sort(key=lambda entry: entry[0])
    return FileSet(entries)


def download(files: Mapping[str, FileRef], destination: Path | str) -> FileSet:
    """Materialize ``files`` under ``destination`` and return references to the copies."""
    dest_root = Path(destination)
    dest_root.mkdir(parents=True, exist_ok=True)
    logger.debug("Writing %d files to %s", len(files), dest_root)

    entries: List[Tuple[str, FileRef]] = []
    for rel_path, ref in files.items():
        target = dest_root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(ref, FileBlob):
            target.write_bytes(ref.data)
        else:
            shutil.copyfile(ref.fs_path, target)
        mode = 0o755 if ref.executable else 0o644
        os.chmod(target, mode)
        entries.append((rel_path, FileFsRef.from_path(target)))
    return FileSet(entries)


__all__ = ["download", "glob_files"]

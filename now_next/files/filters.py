"""Pure transformations over file sets.

Every function returns a new :class:`~now_next.models.FileSet` and keeps the
relative order of the entries it retains.
"""

from __future__ import annotations

import posixpath
import re
from functools import lru_cache
from typing import Callable, Mapping

from ..models import FileRef, FileSet

PathPredicate = Callable[[str], bool]

LOCK_FILES = frozenset({"package-lock.json", "yarn.lock"})
DEFAULT_STATIC_DIRECTORY = "static"


def _is_root(directory: str) -> bool:
    return directory in ("", ".", "./")


def _directory_prefix(directory: str) -> str:
    return directory.replace("\\", "/").strip("/") + "/"


def restrict_to_subtree(files: Mapping[str, FileRef], directory: str) -> FileSet:
    """Keep only the entries located under ``directory``."""
    if _is_root(directory):
        return FileSet(files)
    prefix = _directory_prefix(directory)
    return FileSet((path, ref) for path, ref in files.items() if path.startswith(prefix))


def reparent(files: Mapping[str, FileRef], directory: str) -> FileSet:
    """Move the entries under ``directory`` to the root, dropping the others.

    Pair with :func:`restrict_to_subtree` on the same directory.
    """
    if _is_root(directory):
        return FileSet(files)
    prefix = _directory_prefix(directory)
    return FileSet(
        (path[len(prefix):], ref) for path, ref in files.items() if path.startswith(prefix)
    )


def exclude(files: Mapping[str, FileRef], predicate: PathPredicate) -> FileSet:
    """Drop the entries whose path matches ``predicate``."""
    return FileSet((path, ref) for path, ref in files.items() if not predicate(path))


def select_only(files: Mapping[str, FileRef], predicate: PathPredicate) -> FileSet:
    """Keep only the entries whose path matches ``predicate``."""
    return FileSet((path, ref) for path, ref in files.items() if predicate(path))


def is_lock_file(path: str) -> bool:
    return posixpath.basename(path) in LOCK_FILES


def static_directory_matcher(name: str = DEFAULT_STATIC_DIRECTORY) -> PathPredicate:
    """Return a predicate matching the top-level ``name`` directory and its descendants."""
    directory = name.strip("/")
    prefix = f"{directory}/"

    def _matches(path: str) -> bool:
        return path == directory or path.startswith(prefix)

    return _matches


def exclude_lock_files(files: Mapping[str, FileRef]) -> FileSet:
    return exclude(files, is_lock_file)


def exclude_static_directory(
    files: Mapping[str, FileRef], name: str = DEFAULT_STATIC_DIRECTORY
) -> FileSet:
    return exclude(files, static_directory_matcher(name))


def only_static_directory(
    files: Mapping[str, FileRef], name: str = DEFAULT_STATIC_DIRECTORY
) -> FileSet:
    return select_only(files, static_directory_matcher(name))


@lru_cache(maxsize=128)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a glob into a regex over POSIX relative paths.

    ``*`` and ``?`` never cross a ``/``; ``**`` does, and ``**/`` also matches
    zero directories.
    """
    index = 0
    parts = []
    while index < len(pattern):
        char = pattern[index]
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
            continue
        if pattern.startswith("**", index):
            parts.append(".*")
            index += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        index += 1
    return re.compile("".join(parts) + r"\Z")


def select_glob(files: Mapping[str, FileRef], pattern: str) -> FileSet:
    """Keep the entries whose path matches the glob ``pattern``."""
    regex = compile_glob(pattern)
    return select_only(files, lambda path: regex.match(path) is not None)


def prefix_paths(files: Mapping[str, FileRef], prefix: str) -> FileSet:
    """Place every entry under ``prefix``."""
    if _is_root(prefix):
        return FileSet(files)
    return FileSet((posixpath.join(prefix, path), ref) for path, ref in files.items())


def merge(*file_sets: Mapping[str, FileRef]) -> FileSet:
    """Ordered union of ``file_sets``; later sets win on duplicate paths."""
    combined: dict[str, FileRef] = {}
    for file_set in file_sets:
        combined.update(file_set)
    return FileSet(combined)


__all__ = [
    "DEFAULT_STATIC_DIRECTORY",
    "LOCK_FILES",
    "PathPredicate",
    "compile_glob",
    "exclude",
    "exclude_lock_files",
    "exclude_static_directory",
    "is_lock_file",
    "merge",
    "only_static_directory",
    "prefix_paths",
    "reparent",
    "restrict_to_subtree",
    "select_glob",
    "select_only",
    "static_directory_matcher",
]

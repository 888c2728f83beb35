"""Core data models shared across now-next components."""

from __future__ import annotations

import posixpath
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Tuple, Union

from .errors import InvalidPathError


@dataclass(frozen=True)
class FileFsRef:
    """Reference to file content that already exists on disk."""

    fs_path: str
    size: int
    executable: bool = False

    @classmethod
    def from_path(cls, path: Path | str) -> "FileFsRef":
        """Stat ``path`` and return a reference to it."""
        resolved = Path(path)
        stat_result = resolved.stat()
        return cls(
            fs_path=str(resolved),
            size=stat_result.st_size,
            executable=bool(stat_result.st_mode & 0o111),
        )

    def read_bytes(self) -> bytes:
        return Path(self.fs_path).read_bytes()


@dataclass(frozen=True)
class FileBlob:
    """In-memory file content."""

    data: bytes
    executable: bool = False

    @classmethod
    def from_text(cls, text: str, *, executable: bool = False) -> "FileBlob":
        return cls(data=text.encode("utf-8"), executable=executable)

    @property
    def size(self) -> int:
        return len(self.data)

    def read_bytes(self) -> bytes:
        return self.data


FileRef = Union[FileFsRef, FileBlob]


def normalize_path(path: str) -> str:
    """Return the canonical POSIX form of a file set key.

    Raises :class:`InvalidPathError` for empty or absolute paths and for paths
    that escape their root.
    """
    candidate = path.replace("\\", "/")
    if not candidate or candidate.startswith("/"):
        raise InvalidPathError(f"File set paths must be relative: {path!r}")
    normalized = posixpath.normpath(candidate)
    if normalized == "." or normalized == ".." or normalized.startswith("../"):
        raise InvalidPathError(f"File set path escapes its root: {path!r}")
    return normalized


class FileSet(Mapping[str, FileRef]):
    """Immutable, insertion-ordered mapping of relative path to file content."""

    __slots__ = ("_entries",)

    def __init__(
        self,
        entries: Mapping[str, FileRef] | Iterable[Tuple[str, FileRef]] | None = None,
    ) -> None:
        items: Iterable[Tuple[str, FileRef]]
        if entries is None:
            items = ()
        elif isinstance(entries, Mapping):
            items = entries.items()
        else:
            items = entries

        normalized: dict[str, FileRef] = {}
        for raw_path, ref in items:
            if not isinstance(ref, (FileFsRef, FileBlob)):
                raise TypeError(f"Unsupported file reference for {raw_path!r}: {ref!r}")
            path = normalize_path(raw_path)
            if path in normalized:
                raise InvalidPathError(f"Duplicate file set path: {path!r}")
            normalized[path] = ref
        self._entries = normalized

    def __getitem__(self, path: str) -> FileRef:
        return self._entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"FileSet({list(self._entries)!r})"

    def total_size(self) -> int:
        return sum(ref.size for ref in self._entries.values())


class PackagingMode(str, Enum):
    """How routes are packaged into lambdas."""

    LEGACY = "legacy"
    MODERN = "modern"


@dataclass(frozen=True)
class BuildContext:
    """Inputs of a single build invocation."""

    files: FileSet
    entrypoint: str
    work_path: Path

    @property
    def entry_directory(self) -> str:
        directory = posixpath.dirname(self.entrypoint.replace("\\", "/"))
        return directory or "."


__all__ = [
    "BuildContext",
    "FileBlob",
    "FileFsRef",
    "FileRef",
    "FileSet",
    "PackagingMode",
    "normalize_path",
]

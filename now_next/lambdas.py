"""Lambda value objects and deterministic packaging."""

from __future__ import annotations

import hashlib
import io
import zipfile
from dataclasses import dataclass, field
from typing import Mapping

from .errors import LambdaSizeExceededError
from .models import FileRef, FileSet

DEFAULT_HANDLER = "now__launcher.launcher"
DEFAULT_RUNTIME = "nodejs8.10"
DEFAULT_MAX_LAMBDA_SIZE = 5 * 1024 * 1024

_ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


@dataclass(frozen=True)
class Lambda:
    """A packaged, independently invocable deployment unit."""

    files: FileSet
    handler: str
    runtime: str
    max_size: int
    zip_buffer: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.zip_buffer)

    @property
    def digest(self) -> str:
        return hashlib.sha256(self.zip_buffer).hexdigest()


def build_zip(files: Mapping[str, FileRef]) -> bytes:
    """Zip ``files`` so identical inputs always produce identical bytes."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for path in sorted(files):
            ref = files[path]
            info = zipfile.ZipInfo(path, date_time=_ZIP_TIMESTAMP)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.create_system = 3
            mode = 0o755 if ref.executable else 0o644
            info.external_attr = (0o100000 | mode) << 16
            archive.writestr(info, ref.read_bytes())
    return buffer.getvalue()


def create_lambda(
    files: Mapping[str, FileRef],
    *,
    handler: str = DEFAULT_HANDLER,
    runtime: str = DEFAULT_RUNTIME,
    max_size: int = DEFAULT_MAX_LAMBDA_SIZE,
) -> Lambda:
    """Package ``files`` into a :class:`Lambda`, enforcing the size budget."""
    file_set = files if isinstance(files, FileSet) else FileSet(files)
    zip_buffer = build_zip(file_set)
    if len(zip_buffer) > max_size:
        raise LambdaSizeExceededError(len(zip_buffer), max_size)
    return Lambda(
        files=file_set,
        handler=handler,
        runtime=runtime,
        max_size=max_size,
        zip_buffer=zip_buffer,
    )


__all__ = [
    "DEFAULT_HANDLER",
    "DEFAULT_MAX_LAMBDA_SIZE",
    "DEFAULT_RUNTIME",
    "Lambda",
    "build_zip",
    "create_lambda",
]

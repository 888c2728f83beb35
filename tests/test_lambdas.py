"""Tests for now_next.lambdas."""

from __future__ import annotations

import io
import zipfile

import pytest

from now_next.errors import LambdaSizeExceededError
from now_next.lambdas import DEFAULT_HANDLER, DEFAULT_RUNTIME, build_zip, create_lambda
from now_next.models import FileBlob, FileSet


def _files() -> FileSet:
    return FileSet(
        {
            "now__launcher.js": FileBlob.from_text("exports.launcher = () => {};", executable=True),
            "page.js": FileBlob.from_text("module.exports = {};"),
            "node_modules/react/index.js": FileBlob.from_text("// react"),
        }
    )


def test_zip_bytes_do_not_depend_on_insertion_order() -> None:
    files = _files()
    reversed_files = FileSet(reversed(list(files.items())))

    assert build_zip(files) == build_zip(reversed_files)


def test_zip_entries_are_sorted_with_fixed_metadata() -> None:
    archive = zipfile.ZipFile(io.BytesIO(build_zip(_files())))

    infos = archive.infolist()
    assert [info.filename for info in infos] == sorted(_files())
    assert {info.date_time for info in infos} == {(1980, 1, 1, 0, 0, 0)}
    modes = {info.filename: (info.external_attr >> 16) & 0o777 for info in infos}
    assert modes["now__launcher.js"] == 0o755
    assert modes["page.js"] == 0o644
    assert archive.read("page.js") == b"module.exports = {};"


def test_create_lambda_uses_defaults_and_exposes_digest() -> None:
    first = create_lambda(_files())
    second = create_lambda(_files())

    assert first.handler == DEFAULT_HANDLER
    assert first.runtime == DEFAULT_RUNTIME
    assert first.size == len(first.zip_buffer)
    assert first.digest == second.digest


def test_create_lambda_rejects_packages_over_budget() -> None:
    with pytest.raises(LambdaSizeExceededError) as excinfo:
        create_lambda(_files(), max_size=64)

    assert excinfo.value.max_size == 64
    assert excinfo.value.size > 64

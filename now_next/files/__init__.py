"""File set filtering and filesystem helpers."""

from .filters import (
    DEFAULT_STATIC_DIRECTORY,
    LOCK_FILES,
    exclude,
    exclude_lock_files,
    exclude_static_directory,
    is_lock_file,
    merge,
    only_static_directory,
    prefix_paths,
    reparent,
    restrict_to_subtree,
    select_glob,
    select_only,
    static_directory_matcher,
)
from .fs import download, glob_files

__all__ = [
    "DEFAULT_STATIC_DIRECTORY",
    "LOCK_FILES",
    "download",
    "exclude",
    "exclude_lock_files",
    "exclude_static_directory",
    "glob_files",
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

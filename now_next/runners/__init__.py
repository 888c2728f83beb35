"""Wrappers around the external tools a build shells out to."""

from .ncc import BundleResult, Bundler, NccBundler
from .npm import NpmRunner

__all__ = ["BundleResult", "Bundler", "NccBundler", "NpmRunner"]

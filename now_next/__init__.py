"""Build Next.js projects into serverless lambdas."""

from .assembler import AssemblyResult, LambdaAssembler
from .builder import Builder
from .config import BuildOptions, ConfigError, load_options
from .driver import BuildDriver, DriverResult
from .errors import (
    BuildError,
    CommandError,
    InvalidEntrypointError,
    InvalidPathError,
    InvalidVersionRangeError,
    LambdaSizeExceededError,
    ManifestError,
    MissingBuildIdError,
    MissingFrameworkVersionError,
    NoServerlessPagesBuiltError,
    OutputCollisionError,
)
from .lambdas import Lambda, create_lambda
from .models import BuildContext, FileBlob, FileFsRef, FileSet, PackagingMode

__all__ = [
    "AssemblyResult",
    "BuildContext",
    "BuildDriver",
    "BuildError",
    "BuildOptions",
    "Builder",
    "CommandError",
    "ConfigError",
    "DriverResult",
    "FileBlob",
    "FileFsRef",
    "FileSet",
    "InvalidEntrypointError",
    "InvalidPathError",
    "InvalidVersionRangeError",
    "Lambda",
    "LambdaAssembler",
    "LambdaSizeExceededError",
    "ManifestError",
    "MissingBuildIdError",
    "MissingFrameworkVersionError",
    "NoServerlessPagesBuiltError",
    "OutputCollisionError",
    "PackagingMode",
    "create_lambda",
    "load_options",
]

"""Classify the declared Next.js version into a packaging mode."""

from __future__ import annotations

from typing import Tuple

import nodesemver

from .errors import InvalidVersionRangeError
from .logging import get_logger
from .models import PackagingMode

logger = get_logger("versions")

DIST_TAGS = frozenset({"canary", "latest"})

# Newest release that still builds with `next build --lambdas`; ranges that
# resolve to it are packaged in modern mode.
LATEST_LEGACY_CANARY = "7.0.2-canary.49"

_STABLE_LEGACY: Tuple[str, ...] = (
    "0.1.0",
    "0.1.1",
    "0.1.2",
    "0.1.3",
    "0.1.4",
    "0.1.5",
    "0.2.0",
    "0.2.1",
    "0.2.2",
    "0.2.3",
    "0.2.4",
    "0.2.5",
    "0.2.6",
    "0.2.7",
    "0.2.8",
    "0.2.9",
    "0.2.10",
    "0.2.11",
    "0.2.12",
    "0.2.13",
    "0.2.14",
    "0.3.0",
    "0.3.1",
    "0.3.2",
    "0.3.3",
    "0.4.0",
    "0.4.1",
    "0.9.9",
    "0.9.10",
    "0.9.11",
    "1.0.0",
    "1.0.1",
    "1.0.2",
    "1.1.0",
    "1.1.1",
    "1.1.2",
    "1.2.0",
    "1.2.1",
    "1.2.2",
    "1.2.3",
    "2.0.0",
    "2.0.1",
    "2.1.0",
    "2.1.1",
    "2.2.0",
    "2.3.0",
    "2.3.1",
    "2.4.0",
    "2.4.1",
    "2.4.2",
    "2.4.3",
    "2.4.4",
    "2.4.5",
    "2.4.6",
    "2.4.7",
    "2.4.8",
    "2.4.9",
    "3.0.0",
    "3.0.1",
    "3.0.2",
    "3.0.3",
    "3.0.4",
    "3.0.5",
    "3.0.6",
    "3.1.0",
    "3.2.0",
    "3.2.1",
    "3.2.2",
    "3.2.3",
    "4.0.0",
    "4.0.1",
    "4.0.2",
    "4.0.3",
    "4.0.4",
    "4.0.5",
    "4.1.0",
    "4.1.1",
    "4.1.2",
    "4.1.3",
    "4.1.4",
    "4.2.0",
    "4.2.1",
    "4.2.2",
    "4.2.3",
    "5.0.0",
    "5.0.1",
    "5.1.0",
    "6.0.0",
    "6.0.1",
    "6.0.2",
    "6.0.3",
    "6.1.0",
    "6.1.1",
    "6.1.2",
    "7.0.0",
    "7.0.1",
    "7.0.2",
)

LEGACY_VERSIONS: Tuple[str, ...] = _STABLE_LEGACY + tuple(
    f"7.0.2-canary.{number}" for number in range(50)
)


def select_packaging_mode(version_range: str) -> PackagingMode:
    """Return the packaging mode for a declared `next` version or range."""
    version = version_range.strip()
    if version in DIST_TAGS:
        return PackagingMode.MODERN
    if version in LEGACY_VERSIONS:
        return PackagingMode.LEGACY

    try:
        nodesemver.make_range(version, loose=False)
    except (ValueError, TypeError) as exc:
        raise InvalidVersionRangeError(
            f'Invalid "next" version range "{version_range}": {exc}'
        ) from exc

    best = nodesemver.max_satisfying(list(LEGACY_VERSIONS), version, loose=False)
    logger.debug("Highest legacy version satisfying %s: %s", version, best)
    if best is None:
        return PackagingMode.MODERN
    if best == LATEST_LEGACY_CANARY:
        return PackagingMode.MODERN
    return PackagingMode.LEGACY


__all__ = [
    "DIST_TAGS",
    "LATEST_LEGACY_CANARY",
    "LEGACY_VERSIONS",
    "select_packaging_mode",
]

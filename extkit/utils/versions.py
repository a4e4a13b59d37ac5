"""
Dotted-numeric version helpers.

Versions are compared component by component as integers. Missing
components count as 0, so "1.2" == "1.2.0". Prerelease and build
metadata ("1.0.0-beta", "1.0+abc") are not supported.
"""
from __future__ import annotations

import re

_VERSION_RE = re.compile(r"^\d+(\.\d+)*$")


def is_valid_version(version: str) -> bool:
    """Check that a version string is dotted-numeric."""
    return bool(_VERSION_RE.match(version.strip()))


def parse_version(version: str) -> tuple[int, ...]:
    """
    Parse a dotted-numeric version into a tuple of ints.

    Raises:
        ValueError: If the string is not dotted-numeric.
    """
    version = version.strip()
    if not _VERSION_RE.match(version):
        raise ValueError(f"Invalid version (expected dotted-numeric): {version!r}")
    return tuple(int(part) for part in version.split("."))


def compare_versions(v1: str, v2: str) -> int:
    """
    Compare two versions.

    Returns -1 if v1 < v2, 0 if equal, 1 if v1 > v2.

    Example:
    ```python
    compare_versions("1.10", "1.9")    # 1
    compare_versions("2.0", "2.0.0")   # 0
    ```
    """
    parts1 = parse_version(v1)
    parts2 = parse_version(v2)

    width = max(len(parts1), len(parts2))
    parts1 += (0,) * (width - len(parts1))
    parts2 += (0,) * (width - len(parts2))

    if parts1 < parts2:
        return -1
    if parts1 > parts2:
        return 1
    return 0


def in_range(
    version: str,
    min_version: str | None = None,
    max_version: str | None = None,
) -> bool:
    """Check version against inclusive, optional bounds."""
    if min_version and compare_versions(version, min_version) < 0:
        return False
    if max_version and compare_versions(version, max_version) > 0:
        return False
    return True

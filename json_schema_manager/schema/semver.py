# Copyright 2025 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Semantic version utilities for schema keys.

Schema versions live on disk as three nested numeric directories
(``<major>/<minor>/<patch>``).  Version arithmetic in this module never
touches the filesystem itself; callers pass a *version lister* that
enumerates the numeric children of a version prefix:

  * ``()``               -> existing majors
  * ``(major,)``         -> existing minors under ``major``
  * ``(major, minor)``   -> existing patches under ``major.minor``
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Sequence, Tuple

from ..exceptions import (
    InvalidMajorVersionError,
    InvalidMinorVersionError,
    InvalidPatchVersionError,
    InvalidReleaseTypeError,
)

_UINT_RE = re.compile(r"^(0|[1-9][0-9]*)$")

VersionLister = Callable[[Tuple[int, ...]], Sequence[int]]


@dataclass(frozen=True, order=True)
class SemVer:
    """A schema version (major, minor, patch). Major is always >= 1."""

    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def segments(self) -> Tuple[str, str, str]:
        return (str(self.major), str(self.minor), str(self.patch))

    @classmethod
    def parse(cls, major: str, minor: str, patch: str) -> "SemVer":
        """Build a version from its three decimal string components.

        Raises:
            InvalidMajorVersionError: If major is not an integer greater than 0.
            InvalidMinorVersionError: If minor is not a non-negative integer.
            InvalidPatchVersionError: If patch is not a non-negative integer.
        """
        if not _UINT_RE.match(major) or int(major) == 0:
            raise InvalidMajorVersionError(major)
        if not _UINT_RE.match(minor):
            raise InvalidMinorVersionError(minor)
        if not _UINT_RE.match(patch):
            raise InvalidPatchVersionError(patch)
        return cls(int(major), int(minor), int(patch))


class ReleaseType(str, Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"

    @classmethod
    def from_string(cls, value: str) -> "ReleaseType":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidReleaseTypeError(value) from None


def _next(values: Sequence[int], current: int) -> int:
    if not values:
        return current + 1
    return max(values) + 1


def bump_version(current: SemVer, release_type: ReleaseType, list_versions: VersionLister) -> SemVer:
    """Compute the next free version of a family for the given release type.

    The new component is one more than the highest sibling that already
    exists, so bumping an old version never collides with a newer one.

    Args:
        current: Version being bumped.
        release_type: Which component to advance.
        list_versions: Version lister (see module docstring).

    Returns:
        The bumped version.

    Raises:
        Any error raised by ``list_versions``; nothing is guessed on failure.
    """
    if release_type == ReleaseType.MAJOR:
        return SemVer(_next(list_versions(()), current.major), 0, 0)
    if release_type == ReleaseType.MINOR:
        minors = list_versions((current.major,))
        return SemVer(current.major, _next(minors, current.minor), 0)
    if release_type == ReleaseType.PATCH:
        patches = list_versions((current.major, current.minor))
        return SemVer(current.major, current.minor, _next(patches, current.patch))
    raise InvalidReleaseTypeError(str(release_type))


def future_versions(current: SemVer, list_versions: VersionLister) -> List[SemVer]:
    """Return versions in the same major that are newer than ``current``."""
    result = []
    for minor in sorted(list_versions((current.major,))):
        if minor < current.minor:
            continue
        for patch in sorted(list_versions((current.major, minor))):
            if minor == current.minor and patch <= current.patch:
                continue
            result.append(SemVer(current.major, minor, patch))
    return result


def earlier_versions(current: SemVer, list_versions: VersionLister) -> List[SemVer]:
    """Return versions in the same major that are older than ``current``."""
    result = []
    for minor in sorted(list_versions((current.major,))):
        if minor > current.minor:
            continue
        for patch in sorted(list_versions((current.major, minor))):
            if minor == current.minor and patch >= current.patch:
                continue
            result.append(SemVer(current.major, minor, patch))
    return result

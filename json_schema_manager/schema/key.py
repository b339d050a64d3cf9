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

"""Schema keys.

A key such as ``domain_sub_family_1_2_3`` names exactly one schema document
and maps one-to-one onto its location in the registry::

    <root>/domain/sub/family/1/2/3/domain_sub_family_1_2_3.schema.json
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Sequence, Tuple

from ..exceptions import (
    InvalidDomainError,
    InvalidFamilyNameError,
    InvalidKeyStringError,
    InvalidSchemaKeyCharactersError,
    NoDomainError,
)
from .semver import SemVer

KEY_SEPARATOR = "_"
SCOPE_SEPARATOR = "/"
SCHEMA_SUFFIX = ".schema.json"

_SEGMENT_RE = re.compile(r"^[a-z0-9-]+$")
_KEY_RE = re.compile(r"^[a-z0-9_-]+$")


class PathType(str, Enum):
    FAMILY_DIR = "family-dir"
    HOME_DIR = "home-dir"
    FILE_PATH = "file-path"


@dataclass(frozen=True)
class Key:
    """Immutable identity of one schema version."""

    domain: Tuple[str, ...]
    family: str
    version: SemVer

    @classmethod
    def parse(cls, value: str) -> "Key":
        """Parse an underscore separated key string.

        Raises:
            InvalidSchemaKeyCharactersError: Characters outside ``[a-z0-9_-]``.
            InvalidKeyStringError: Too few segments.
            NoDomainError: The key has a family and version but no domain.
            InvalidDomainError, InvalidFamilyNameError, InvalidVersionError:
                A segment is malformed.
        """
        if not _KEY_RE.match(value):
            raise InvalidSchemaKeyCharactersError(value)
        return cls.from_string(value, KEY_SEPARATOR)

    @classmethod
    def from_string(cls, value: str, separator: str) -> "Key":
        parts = value.split(separator)
        if len(parts) < 4:
            raise InvalidKeyStringError(value)
        if len(parts) == 4:
            raise NoDomainError(value)
        return cls.from_parts(parts)

    @classmethod
    def from_parts(cls, parts: Sequence[str]) -> "Key":
        domain, family = parts[:-4], parts[-4]
        major, minor, patch = parts[-3:]
        if not all(_SEGMENT_RE.match(d) for d in domain):
            raise InvalidDomainError(domain)
        if not _SEGMENT_RE.match(family):
            raise InvalidFamilyNameError(family)
        version = SemVer.parse(major, minor, patch)
        return cls(tuple(domain), family, version)

    def __str__(self) -> str:
        return KEY_SEPARATOR.join(self.segments())

    def segments(self) -> Tuple[str, ...]:
        return self.domain + (self.family,) + self.version.segments()

    @property
    def filename(self) -> str:
        return f"{self}{SCHEMA_SUFFIX}"

    def with_version(self, version: SemVer) -> "Key":
        return Key(self.domain, self.family, version)

    def path(self, path_type: PathType, root: Path) -> Path:
        family_dir = Path(root).joinpath(*self.domain, self.family)
        if path_type == PathType.FAMILY_DIR:
            return family_dir
        home_dir = family_dir.joinpath(*self.version.segments())
        if path_type == PathType.HOME_DIR:
            return home_dir
        return home_dir / self.filename

    def in_scope(self, scope: str) -> bool:
        """True when this key lives under the ``/`` separated search scope."""
        if not scope:
            return True
        wanted = tuple(scope.strip(SCOPE_SEPARATOR).split(SCOPE_SEPARATOR))
        return self.segments()[: len(wanted)] == wanted


def parse_key(value: str) -> Key:
    return Key.parse(value)


def filename(key: Key) -> str:
    return key.filename

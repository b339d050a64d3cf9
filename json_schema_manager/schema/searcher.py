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

"""Enumerates the schemas below a search scope."""

import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from ..exceptions import InvalidInputError, InvalidSchemaFilenameError, InvalidSearchScopeError, NotFoundError
from .key import SCHEMA_SUFFIX, SCOPE_SEPARATOR, Key

if TYPE_CHECKING:
    from .registry import Registry

logger = logging.getLogger(__name__)

_SCOPE_RE = re.compile(r"^[a-z0-9-/]+$")


def validate_search_scope(scope: str) -> str:
    """Validate a non-empty ``/`` separated scope such as ``domain/family/1``."""
    if not _SCOPE_RE.match(scope):
        raise InvalidSearchScopeError(scope)
    return scope


def _raise(error: OSError) -> None:
    raise error


class Searcher:
    """Finds every schema file below ``scope`` (``""`` is the whole registry)."""

    def __init__(self, registry: "Registry", scope: str = ""):
        if scope:
            validate_search_scope(scope)
        self.registry = registry
        self.scope = scope
        self.search_root = Path(registry.root_directory).joinpath(
            *[part for part in scope.split(SCOPE_SEPARATOR) if part]
        )
        if not self.search_root.is_dir():
            raise NotFoundError(self.search_root)

    def schemas(self) -> Iterator[Key]:
        """Yield the keys of the schema files found, in path order.

        Hidden directories are skipped.  Directory read errors propagate.

        Raises:
            InvalidSchemaFilenameError: If a ``*.schema.json`` name is not a key.
        """
        for dirpath, dirnames, filenames in os.walk(self.search_root, onerror=_raise):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for name in sorted(filenames):
                if not name.endswith(SCHEMA_SUFFIX):
                    continue
                path = Path(dirpath) / name
                try:
                    key = Key.parse(name[: -len(SCHEMA_SUFFIX)])
                except InvalidInputError as exc:
                    raise InvalidSchemaFilenameError(path, exc) from exc
                yield key

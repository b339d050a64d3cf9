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

"""Turns user supplied target strings into a schema key or a search scope.

A target may be given as:

* a key: ``payments_card_charge_1_0_0``
* a canonical id: ``https://schemas.example.com/payments_card_charge_1_0_0.schema.json``
* a path to a schema file or to a directory inside the registry
* a search scope: ``payments/card``
* ``all`` for the whole registry
"""

import logging
import os
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional, Union
from urllib.parse import urlparse

from ..exceptions import (
    InvalidSearchScopeError,
    InvalidTargetArgumentError,
    LocationOutsideRootDirectoryError,
    NoSchemaTargetsError,
    NotASchemaFileError,
    NotFoundError,
    TargetArgumentTargetsMultipleSchemasError,
)
from ..utils.fs import canonical_path, is_within
from .key import KEY_SEPARATOR, SCHEMA_SUFFIX, Key
from .registry import Registry
from .searcher import Searcher, validate_search_scope

logger = logging.getLogger(__name__)

ALL_TARGET = "all"
_URL_PREFIXES = ("http://", "https://")
_PATH_PREFIXES = ("./", "../", "/", "~", ".\\", "..\\")


@dataclass(frozen=True)
class ResolvedTarget:
    """Exactly one of ``key`` or ``scope`` is set."""

    key: Optional[Key] = None
    scope: Optional[str] = None

    @property
    def is_single(self) -> bool:
        return self.key is not None

    def matches(self, key: Key) -> bool:
        if self.key is not None:
            return key == self.key
        return key.in_scope(self.scope or "")

    def __str__(self) -> str:
        if self.key is not None:
            return str(self.key)
        return self.scope or ALL_TARGET


def _looks_like_path(arg: str) -> bool:
    return arg.startswith(_PATH_PREFIXES) or arg.endswith(".json") or "\\" in arg


class TargetResolver:
    """Resolves a positional argument plus optional explicit overrides.

    Explicit overrides win in the order key, id, scope.  Without overrides
    the positional argument is inferred.
    """

    def __init__(self, registry: Registry, arg: str = ""):
        self.registry = registry
        self.arg = arg
        self._key: Optional[str] = None
        self._id: Optional[str] = None
        self._scope: Optional[str] = None

    def set_key(self, key: Union[Key, str]) -> "TargetResolver":
        self._key = str(key)
        return self

    def set_id(self, schema_id: str) -> "TargetResolver":
        self._id = schema_id
        return self

    def set_scope(self, scope: str) -> "TargetResolver":
        self._scope = scope
        return self

    def resolve(self) -> ResolvedTarget:
        """Resolve the target.

        Raises:
            NoSchemaTargetsError: If nothing was given.
            InvalidInputError: If the given target is malformed.
            ResourceError: If a given path does not exist or is outside the root.
        """
        if self._key is not None:
            return ResolvedTarget(key=Key.parse(self._key))
        if self._id is not None:
            if not self._id:
                raise NoSchemaTargetsError()
            if not self._id.startswith(_URL_PREFIXES):
                raise InvalidTargetArgumentError(self._id, "a canonical id must be an http(s) URL")
            return ResolvedTarget(key=self._key_from_id(self._id))
        if self._scope is not None:
            if not self._scope:
                raise InvalidSearchScopeError(self._scope)
            return ResolvedTarget(scope=validate_search_scope(self._scope.strip("/")))
        return self._infer(self.arg)

    def _infer(self, arg: str) -> ResolvedTarget:
        if not arg:
            raise NoSchemaTargetsError()
        if arg == ALL_TARGET:
            return ResolvedTarget(scope="")
        if arg.startswith(_URL_PREFIXES):
            return ResolvedTarget(key=self._key_from_id(arg))
        if os.path.exists(os.path.expanduser(arg)):
            return self._resolve_path(arg)
        if _looks_like_path(arg):
            raise NotFoundError(arg)
        if KEY_SEPARATOR in arg:
            return ResolvedTarget(key=Key.parse(arg))
        return ResolvedTarget(scope=validate_search_scope(arg.strip("/")))

    @staticmethod
    def _key_from_id(schema_id: str) -> Key:
        filename = PurePosixPath(urlparse(schema_id).path).name
        if not filename.endswith(SCHEMA_SUFFIX):
            raise NotASchemaFileError(schema_id)
        return Key.parse(filename[: -len(SCHEMA_SUFFIX)])

    def _resolve_path(self, arg: str) -> ResolvedTarget:
        path = canonical_path(arg)
        if not path.is_dir():
            return ResolvedTarget(key=self.registry.key_from_schema_path(path))
        root = self.registry.root_directory
        if not is_within(path, root):
            raise LocationOutsideRootDirectoryError(path, root)
        relative = path.relative_to(root)
        scope = "/".join(relative.parts)
        return ResolvedTarget(scope=scope)

    def resolve_single_key(self) -> Key:
        """Resolve to exactly one key, expanding a scope if necessary."""
        target = self.resolve()
        if target.key is not None:
            return target.key
        return resolve_scope_to_single_key(self.registry, target.scope, self.arg or self._scope)


def resolve_scope_to_single_key(registry: Registry, scope: str, arg: Optional[str] = None) -> Key:
    """Return the only schema inside ``scope``.

    Raises:
        NotFoundError: If the scope does not exist or holds no schema.
        TargetArgumentTargetsMultipleSchemasError: If it holds more than one.
    """
    label = arg or scope or ALL_TARGET
    found = None
    for key in Searcher(registry, scope).schemas():
        if found is not None:
            raise TargetArgumentTargetsMultipleSchemasError(label)
        found = key
    if found is None:
        raise NotFoundError(label)
    return found

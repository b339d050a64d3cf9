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

"""A single schema version in the registry and the files that belong to it."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..exceptions import (
    AlreadyExistsError,
    CannotReadTestDocumentError,
    CannotReadXPublicError,
    InvalidJSONError,
    InvalidTestDocumentError,
    NotFoundError,
    SchemaReadError,
    TestDirMissingError,
)
from ..file_io.template_renderer import TemplateRenderer
from ..utils.fs import uint_subdirectories
from .key import Key, PathType
from .semver import earlier_versions, future_versions
from .template import ParsedTemplate, parse_template

if TYPE_CHECKING:
    from ..config.config import EnvConfig
    from ..validator.compiler import Validator
    from .registry import Registry

logger = logging.getLogger(__name__)

NEW_SCHEMA_TEMPLATE_NAME = "new.schema.json.jinja2"
X_PUBLIC = "x-public"


class TestDocType(str, Enum):
    __test__ = False

    PASS = "pass"
    FAIL = "fail"


@dataclass(frozen=True)
class TestInfo:
    """A test document loaded from a ``pass/`` or ``fail/`` directory."""

    __test__ = False

    path: Path
    document: Any

    @classmethod
    def load(cls, path: Path) -> "TestInfo":
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise CannotReadTestDocumentError(path, exc) from exc
        try:
            document = json.loads(data)
        except ValueError as exc:
            raise InvalidTestDocumentError(path, str(exc)) from exc
        return cls(Path(path), document)


@dataclass(frozen=True)
class RenderInfo:
    """A schema rendered and compiled for one environment."""

    id: str
    rendered: bytes
    document: Any
    validator: "Validator"


class Schema:
    """One schema version: its source document, test documents and renders.

    The key is fixed for the lifetime of the object; creating a new version
    produces a new :class:`Schema`.  Renders and test documents are cached
    per instance and dropped by :meth:`clear_computed`.
    """

    def __init__(self, key: Key, registry: "Registry"):
        self._key = key
        self._registry = registry
        self.src_doc: Optional[bytes] = None
        self.template: Optional[ParsedTemplate] = None
        self.is_public = False
        self._lock = threading.Lock()
        self._renders: Dict[str, RenderInfo] = {}
        self._tests: Dict[TestDocType, List[TestInfo]] = {}

    @classmethod
    def load(cls, key: Key, registry: "Registry") -> "Schema":
        """Read and parse the schema file of ``key``.

        Raises:
            NotFoundError: If the schema file does not exist.
            SchemaReadError: If it cannot be read.
            InvalidJSONError: If the source is not JSON.
            CannotReadXPublicError: If ``x-public`` is present but not a boolean.
            TemplateFormatInvalidError: If a directive is malformed.
        """
        schema = cls(key, registry)
        path = schema.path(PathType.FILE_PATH)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(path) from None
        except OSError as exc:
            raise SchemaReadError(path, exc) from exc

        try:
            text = data.decode("utf-8")
            source = json.loads(text)
        except ValueError as exc:
            raise InvalidJSONError(path, str(exc)) from exc

        if isinstance(source, dict) and X_PUBLIC in source:
            if not isinstance(source[X_PUBLIC], bool):
                raise CannotReadXPublicError(path)
            schema.is_public = source[X_PUBLIC]

        schema.template = parse_template(text, path)
        schema.src_doc = data
        logger.debug(f"Loaded schema {key}")
        return schema

    @property
    def key(self) -> Key:
        return self._key

    @property
    def registry(self) -> "Registry":
        return self._registry

    @property
    def filename(self) -> str:
        return self._key.filename

    def path(self, path_type: PathType) -> Path:
        return self._key.path(path_type, self._registry.root_directory)

    def canonical_id(self, env_config: "EnvConfig") -> str:
        root = env_config.url_root(self.is_public)
        if not root.endswith("/"):
            root += "/"
        return root + self.filename

    # ---- rendering -----------------------------------------------------------

    def render(self, env_config: "EnvConfig") -> RenderInfo:
        cached = self.cached_render(env_config.name)
        if cached is not None:
            return cached
        return self._registry.coordinate_render(self, env_config)

    def cached_render(self, env_name: str) -> Optional[RenderInfo]:
        with self._lock:
            return self._renders.get(env_name)

    def store_render(self, env_name: str, render_info: RenderInfo) -> RenderInfo:
        """Store a render unless one is already stored. Returns the stored one."""
        with self._lock:
            return self._renders.setdefault(env_name, render_info)

    def clear_computed(self) -> None:
        with self._lock:
            self._renders.clear()
            self._tests.clear()

    # ---- test documents ------------------------------------------------------

    def test_documents(self, doc_type: TestDocType) -> List[TestInfo]:
        """Load the ``*.json`` documents of ``pass/`` or ``fail/`` in filename order.

        Raises:
            TestDirMissingError: If the directory does not exist.
            CannotReadTestDocumentError, InvalidTestDocumentError: Per document.
        """
        with self._lock:
            if doc_type in self._tests:
                return self._tests[doc_type]

        directory = self.path(PathType.HOME_DIR) / doc_type.value
        if not directory.is_dir():
            raise TestDirMissingError(directory, doc_type.value)
        with os.scandir(directory) as entries:
            names = sorted(
                entry.name
                for entry in entries
                if entry.name.endswith(".json") and not entry.is_dir()
            )
        tests = [TestInfo.load(directory / name) for name in names]

        with self._lock:
            return self._tests.setdefault(doc_type, tests)

    # ---- siblings ------------------------------------------------------------

    def _list_versions(self, prefix) -> List[int]:
        directory = self.path(PathType.FAMILY_DIR).joinpath(*(str(p) for p in prefix))
        return uint_subdirectories(directory)

    def future_keys(self) -> List[Key]:
        """Keys of newer versions within the same major version."""
        return [self._key.with_version(v) for v in future_versions(self._key.version, self._list_versions)]

    def earlier_keys(self) -> List[Key]:
        """Keys of older versions within the same major version."""
        return [self._key.with_version(v) for v in earlier_versions(self._key.version, self._list_versions)]

    # ---- writing -------------------------------------------------------------

    def write_new_schema_files(self, schema_version: str) -> None:
        """Write a fresh schema document and empty ``pass/`` and ``fail/`` directories."""
        home = self.path(PathType.HOME_DIR)
        if home.exists():
            raise AlreadyExistsError(home)
        renderer = TemplateRenderer()
        renderer.render_template_to_file(
            NEW_SCHEMA_TEMPLATE_NAME,
            str(self.path(PathType.FILE_PATH)),
            schema_version=schema_version,
        )
        for doc_type in TestDocType:
            (home / doc_type.value).mkdir(parents=True, exist_ok=True)
        logger.debug(f"Created schema {self.path(PathType.FILE_PATH)}")

    def duplicate_schema_files(self, source: "Schema") -> None:
        """Copy the home directory of ``source`` into this schema's home.

        The copy is staged in a hidden sibling directory and moved into place
        once complete. On failure the staging directory and any version
        directories created for it are removed again, so later version bumps
        do not see them.

        Raises:
            AlreadyExistsError: If this schema's home directory already exists.
        """
        home = self.path(PathType.HOME_DIR)
        if home.exists():
            raise AlreadyExistsError(home)

        # Topmost ancestor of the home directory that this call creates.
        created_root = None
        for ancestor in (home.parent, *home.parent.parents):
            if ancestor.exists():
                break
            created_root = ancestor
        home.parent.mkdir(parents=True, exist_ok=True)

        staging = Path(tempfile.mkdtemp(prefix=".jsm-", dir=home.parent))
        moved = False
        try:
            target = staging / "home"
            shutil.copytree(source.path(PathType.HOME_DIR), target)
            (target / source.filename).rename(target / self.filename)
            for doc_type in TestDocType:
                (target / doc_type.value).mkdir(exist_ok=True)
            os.rename(target, home)
            moved = True
        finally:
            shutil.rmtree(staging, ignore_errors=True)
            if not moved and created_root is not None:
                shutil.rmtree(created_root, ignore_errors=True)
        logger.debug(f"Created schema {self.path(PathType.FILE_PATH)} from {source.key}")

    def __repr__(self) -> str:
        return f"Schema({self._key})"
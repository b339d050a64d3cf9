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

import logging
import os
import threading
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

from ..config.config import Config, EnvConfig, load_config
from ..exceptions import (
    AlreadyExistsError,
    InvalidCreateSchemaArgError,
    InvalidInputError,
    InvalidJSONSchemaError,
    JsonSchemaManagerError,
    LocationOutsideRootDirectoryError,
    NotASchemaFileError,
    NotFoundError,
    RegistryInitError,
    RegistryRootNotFolderError,
)
from ..utils.fs import canonical_path, is_within, uint_subdirectories
from ..validator.compiler import Compiler
from ..validator.jsonschema_compiler import JsonschemaCompiler
from .key import SCHEMA_SUFFIX, SCOPE_SEPARATOR, Key, PathType
from .renderer import Renderer
from .schema import RenderInfo, Schema
from .searcher import validate_search_scope
from .semver import ReleaseType, bump_version

logger = logging.getLogger(__name__)

ROOT_DIR_ENV_VAR = "JSM_REGISTRY_ROOT_DIR"


class Registry:
    """Collection of the schemas under one root directory.

    Loaded schemas are cached by key and renders are cached on each schema,
    so repeated lookups and renders of the same schema are cheap and return
    the same objects until :meth:`reset` is called.
    """

    def __init__(
        self,
        root_directory: Optional[Union[str, Path]] = None,
        compiler: Optional[Compiler] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Open a registry.

        Args:
            root_directory: Registry root. Falls back to ``$JSM_REGISTRY_ROOT_DIR``.
            compiler: Validation backend. Defaults to :class:`JsonschemaCompiler`.
            environ: Environment mapping, ``os.environ`` by default.

        Raises:
            RegistryInitError: If no root is given or it cannot be resolved.
            RegistryRootNotFolderError: If the root is not a directory.
            ConfigError: If the registry configuration is missing or invalid.
        """
        environ = os.environ if environ is None else environ
        if not root_directory:
            root_directory = environ.get(ROOT_DIR_ENV_VAR, "")
        if not root_directory:
            raise RegistryInitError(
                "", f"no registry root given and {ROOT_DIR_ENV_VAR} is not set"
            )
        try:
            root = canonical_path(root_directory)
        except OSError as exc:
            raise RegistryInitError(root_directory, str(exc)) from exc
        if not root.is_dir():
            raise RegistryRootNotFolderError(root)

        self._root = root
        self.compiler = compiler if compiler is not None else JsonschemaCompiler()
        self.config: Config = load_config(root, self.compiler.supported_schema_versions())
        self._cache: Dict[Key, Schema] = {}
        self._lock = threading.RLock()
        logger.debug(f"Opened registry at {root}")

    @property
    def root_directory(self) -> Path:
        return self._root

    def env_config(self, env_name: Optional[str] = None) -> EnvConfig:
        if not env_name:
            return self.config.production_env_config()
        return self.config.env_config(env_name)

    # ---- lookup --------------------------------------------------------------

    def key_from_schema_path(self, path: Union[str, Path]) -> Key:
        """Map a schema file path inside the registry to its key.

        Raises:
            NotFoundError: If the path does not exist.
            NotASchemaFileError: If it is a directory or lacks the schema suffix.
            LocationOutsideRootDirectoryError: If it is outside the root.
            InvalidInputError: If the filename is not a valid key.
        """
        try:
            resolved = canonical_path(path)
        except FileNotFoundError:
            raise NotFoundError(path) from None
        if resolved.is_dir() or not resolved.name.endswith(SCHEMA_SUFFIX):
            raise NotASchemaFileError(str(path))
        if not is_within(resolved, self._root):
            raise LocationOutsideRootDirectoryError(resolved, self._root)
        return Key.parse(resolved.name[: -len(SCHEMA_SUFFIX)])

    def get_schema_by_key(self, key: Union[Key, str]) -> Schema:
        if isinstance(key, str):
            key = Key.parse(key)
        with self._lock:
            schema = self._cache.get(key)
        if schema is not None:
            return schema
        schema = Schema.load(key, self)
        with self._lock:
            return self._cache.setdefault(key, schema)

    def get_schema(self, path: Union[str, Path]) -> Schema:
        return self.get_schema_by_key(self.key_from_schema_path(path))

    # ---- creation ------------------------------------------------------------

    def create_schema(self, domain_and_family: str) -> Key:
        """Create version 1.0.0 of a new schema family.

        Args:
            domain_and_family: ``/`` separated domain segments and family name,
                e.g. ``"payments/card/charge"``.

        Returns:
            The key of the created schema.

        Raises:
            InvalidCreateSchemaArgError: If the argument is malformed.
            AlreadyExistsError: If the family already has a version.
        """
        try:
            scope = validate_search_scope(domain_and_family.strip(SCOPE_SEPARATOR))
            key = Key.from_string(scope + "/1/0/0", SCOPE_SEPARATOR)
        except InvalidInputError as exc:
            raise InvalidCreateSchemaArgError(domain_and_family, exc) from exc

        family_dir = key.path(PathType.FAMILY_DIR, self._root)
        with self._lock:
            if key in self._cache:
                raise AlreadyExistsError(key)
            if family_dir.is_dir() and uint_subdirectories(family_dir):
                raise AlreadyExistsError(family_dir)
            schema = Schema(key, self)
            schema.write_new_schema_files(self.config.default_json_schema_version)
        return key

    def create_schema_version(self, key: Union[Key, str], release_type: ReleaseType) -> Key:
        """Create the next version of an existing schema.

        The new version copies the base schema's document and test documents.

        Returns:
            The key of the created schema.

        Raises:
            AlreadyExistsError: If the computed version already exists.
        """
        base = self.get_schema_by_key(key)
        family_dir = base.path(PathType.FAMILY_DIR)

        def list_versions(prefix: Tuple[int, ...]):
            return uint_subdirectories(family_dir.joinpath(*(str(p) for p in prefix)))

        with self._lock:
            version = bump_version(base.key.version, release_type, list_versions)
            new_key = base.key.with_version(version)
            if new_key in self._cache:
                raise AlreadyExistsError(new_key)
            Schema(new_key, self).duplicate_schema_files(base)
        return new_key

    # ---- rendering -----------------------------------------------------------

    def coordinate_render(
        self, schema: Schema, env_config: EnvConfig, resolving: Tuple[Key, ...] = ()
    ) -> RenderInfo:
        """Render, register and compile ``schema`` for ``env_config``.

        Concurrent callers may both render; the first stored result wins so
        every caller gets the same :class:`RenderInfo`.

        Raises:
            RenderError: If rendering or compilation fails.
        """
        cached = schema.cached_render(env_config.name)
        if cached is not None:
            return cached

        rendered, document = Renderer(schema, env_config, resolving).render()
        schema_id = schema.canonical_id(env_config)
        path = schema.path(PathType.FILE_PATH)
        try:
            self.compiler.add_schema(schema_id, document)
            validator = self.compiler.compile(schema_id)
        except JsonSchemaManagerError as exc:
            raise InvalidJSONSchemaError(path, exc) from exc

        logger.debug(f"Rendered {schema.key} for {env_config.name} as {schema_id}")
        return schema.store_render(
            env_config.name, RenderInfo(schema_id, rendered, document, validator)
        )

    def reset(self) -> None:
        """Drop every cached schema, render and compiled schema."""
        with self._lock:
            for schema in self._cache.values():
                schema.clear_computed()
            self._cache.clear()
            self.compiler.clear()
        logger.debug("Registry caches cleared")

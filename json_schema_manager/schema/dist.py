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

"""Writes rendered schemas to a per-environment distribution directory.

Layout::

    <dist>/<env>/public/<key>.schema.json
    <dist>/<env>/private/<key>.schema.json
"""

import logging
import os
import shutil
from abc import ABC, abstractmethod
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Optional, Union

from ..exceptions import DistBuildError, JsonSchemaManagerError
from ..repo.gitter import Gitter, Revision
from .key import SCHEMA_SUFFIX, Key
from .registry import Registry
from .searcher import Searcher

logger = logging.getLogger(__name__)

DEFAULT_DIST_DIR_NAME = "dist"
PUBLIC_DIR = "public"
PRIVATE_DIR = "private"


class DistBuilder(ABC):
    @abstractmethod
    def build_all(self, env: str) -> int:
        ...

    @abstractmethod
    def build_changed(self, env: str, anchor: Revision) -> int:
        ...

    @abstractmethod
    def set_num_workers(self, num_workers: int) -> None:
        ...


class FSDistBuilder(DistBuilder):
    """Distribution builder writing to the local filesystem.

    The distribution directory defaults to a ``dist`` directory next to the
    registry root.
    """

    def __init__(
        self,
        registry: Registry,
        dist_dir: Optional[Union[str, Path]] = None,
        gitter: Optional[Gitter] = None,
        num_workers: Optional[int] = None,
    ):
        self.registry = registry
        if dist_dir is None:
            dist_dir = registry.root_directory.parent / DEFAULT_DIST_DIR_NAME
        self.dist_dir = Path(dist_dir)
        self.gitter = gitter
        self.num_workers = num_workers or os.cpu_count() or 1

    def set_num_workers(self, num_workers: int) -> None:
        if num_workers < 1:
            raise ValueError(f"num_workers must be at least 1, got {num_workers}")
        self.num_workers = num_workers

    def build_all(self, env: str) -> int:
        """Render every schema of the registry for ``env``.

        Returns:
            Number of schemas written.

        Raises:
            UnknownEnvironmentError: If ``env`` is not configured.
            DistBuildError: On the first schema that fails; pending work is cancelled.
        """
        env_config = self.registry.env_config(env)
        self._prepare_env_dir(env_config.name)
        keys = list(Searcher(self.registry).schemas())
        logger.info(f"Building {len(keys)} schemas for {env_config.name} with {self.num_workers} workers")

        with ThreadPoolExecutor(max_workers=self.num_workers) as executor:
            futures = [executor.submit(self._render_and_write, env_config.name, key) for key in keys]
            done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
            for future in not_done:
                future.cancel()
            for future in done:
                future.result()
        return len(keys)

    def build_changed(self, env: str, anchor: Revision) -> int:
        """Render the schemas changed since ``anchor`` for ``env``.

        Paths that do not map to a schema key are skipped.
        """
        if self.gitter is None:
            raise DistBuildError("building changed schemas requires a change tracker")
        env_config = self.registry.env_config(env)
        self._prepare_env_dir(env_config.name)
        changes = self.gitter.get_schema_changes(
            anchor, str(self.registry.root_directory), SCHEMA_SUFFIX
        )
        count = 0
        for change in changes:
            try:
                key = self.registry.key_from_schema_path(change.path)
            except JsonSchemaManagerError as exc:
                logger.debug(f"Skipping {change.path}: {exc}")
                continue
            self._render_and_write(env_config.name, key)
            count += 1
        return count

    def _prepare_env_dir(self, env: str) -> None:
        env_dir = self.dist_dir / env
        shutil.rmtree(env_dir, ignore_errors=True)
        for sub in (PUBLIC_DIR, PRIVATE_DIR):
            (env_dir / sub).mkdir(parents=True, exist_ok=True)

    def _render_and_write(self, env: str, key: Key) -> Path:
        try:
            schema = self.registry.get_schema_by_key(key)
            render_info = schema.render(self.registry.env_config(env))
        except JsonSchemaManagerError as exc:
            raise DistBuildError(f"failed to render schema {key}: {exc}") from exc

        sub = PUBLIC_DIR if schema.is_public else PRIVATE_DIR
        output_path = self.dist_dir / env / sub / schema.filename
        try:
            output_path.write_bytes(render_info.rendered)
        except OSError as exc:
            raise DistBuildError(f"failed to write schema {key}: {exc}") from exc
        logger.debug(f"Wrote {output_path}")
        return output_path

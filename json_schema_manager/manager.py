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

"""Command behaviour on top of a registry, independent of argument parsing."""

import logging
import sys
import threading
from typing import Optional, TextIO, Union

from .exceptions import ChangedDeployedSchemasError, DistBuildError, NoSchemaTargetsError
from .report import get_reporter
from .repo.gitter import Gitter
from .schema.dist import DistBuilder, FSDistBuilder
from .schema.key import SCHEMA_SUFFIX, Key
from .schema.registry import Registry
from .schema.resolver import ResolvedTarget
from .schema.results import TestReport
from .schema.semver import ReleaseType
from .schema.tester import Tester, TestScope
from .schema.watcher import WatchEvent, Watcher

logger = logging.getLogger(__name__)


class SchemaManager:
    def __init__(
        self,
        registry: Registry,
        gitter: Optional[Gitter] = None,
        dist_builder: Optional[DistBuilder] = None,
        out: Optional[TextIO] = None,
    ):
        self.registry = registry
        self.gitter = gitter
        self.dist_builder = dist_builder or FSDistBuilder(registry, gitter=gitter)
        self.out = out if out is not None else sys.stdout

    # ---- schemas -------------------------------------------------------------

    def create_schema(self, domain_and_family: str) -> Key:
        return self.registry.create_schema(domain_and_family)

    def create_schema_version(self, key: Key, release_type: Union[ReleaseType, str]) -> Key:
        if not isinstance(release_type, ReleaseType):
            release_type = ReleaseType.from_string(release_type)
        logger.debug(f"Creating {release_type.value} version of {key}")
        return self.registry.create_schema_version(key, release_type)

    def render_schema(self, target: ResolvedTarget, env: Optional[str] = None) -> bytes:
        """Render a single schema for ``env`` (production when not given).

        Raises:
            NoSchemaTargetsError: If the target is not a single schema.
            UnknownEnvironmentError: If ``env`` is not configured.
        """
        if target.key is None:
            raise NoSchemaTargetsError()
        env_config = self.registry.env_config(env)
        schema = self.registry.get_schema_by_key(target.key)
        return self.registry.coordinate_render(schema, env_config).rendered

    # ---- validation ----------------------------------------------------------

    def _new_tester(
        self,
        continue_on_error: bool,
        test_scope: Union[TestScope, str],
        skip_compatible: bool,
        cancel_event: Optional[threading.Event],
    ) -> Tester:
        tester = Tester(self.registry, cancel_event)
        tester.set_stop_on_first_error(not continue_on_error)
        tester.set_scope(test_scope)
        tester.set_skip_compatible(skip_compatible)
        return tester

    def validate_schema(
        self,
        target: ResolvedTarget,
        verbose: bool = False,
        output_format: str = "text",
        use_colour: bool = False,
        continue_on_error: bool = False,
        test_scope: Union[TestScope, str] = TestScope.LOCAL,
        skip_compatible: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> TestReport:
        """Test the target and write the report to :attr:`out`."""
        reporter = get_reporter(output_format, verbose, use_colour)
        tester = self._new_tester(continue_on_error, test_scope, skip_compatible, cancel_event)
        if target.key is not None:
            report = tester.test_single_schema(target.key)
        elif target.scope is not None:
            report = tester.test_found_schemas(target.scope)
        else:
            raise NoSchemaTargetsError()
        reporter.write(self.out, report)
        return report

    def watch_validation(
        self,
        target: ResolvedTarget,
        cancel_event: threading.Event,
        verbose: bool = False,
        output_format: str = "text",
        use_colour: bool = False,
        continue_on_error: bool = False,
        test_scope: Union[TestScope, str] = TestScope.LOCAL,
        skip_compatible: bool = False,
        ready_event: Optional[threading.Event] = None,
        watcher: Optional[Watcher] = None,
    ) -> None:
        """Re-test the target whenever one of its files changes.

        Runs until ``cancel_event`` is set, then raises
        :class:`OperationCancelledError`.
        """
        if target.key is None and target.scope is None:
            raise NoSchemaTargetsError()
        reporter = get_reporter(output_format, verbose, use_colour)
        watcher = watcher or Watcher(self.registry, target)

        def on_change(event: WatchEvent) -> None:
            if not target.matches(event.key):
                return
            tester = self._new_tester(continue_on_error, test_scope, skip_compatible, cancel_event)
            if event.test_path is not None:
                logger.info(f"Test changed: {event.test_path}")
                report = tester.test_specific_document(event.key, event.test_path)
            else:
                logger.info(f"Schema changed: {event.key}{SCHEMA_SUFFIX}")
                self.registry.reset()
                report = tester.test_single_schema(event.key)
            reporter.write(self.out, report)
            self.out.flush()

        if ready_event is not None:
            threading.Thread(
                target=lambda: watcher.ready.wait() and ready_event.set(),
                name="jsm-watch-ready",
                daemon=True,
            ).start()
        watcher.watch(on_change, cancel_event)

    # ---- distribution --------------------------------------------------------

    def check_changes(self, env: str) -> None:
        """Refuse modifications of deployed schemas unless ``env`` allows mutation.

        Raises:
            ChangedDeployedSchemasError: If a previously deployed schema changed.
        """
        if self.gitter is None:
            raise DistBuildError("checking changes requires a change tracker")
        env_config = self.registry.env_config(env)
        anchor = self.gitter.get_latest_anchor(env_config.name)
        changes = self.gitter.get_schema_changes(
            anchor, str(self.registry.root_directory), SCHEMA_SUFFIX
        )
        if env_config.allow_schema_mutation:
            return
        modified = [change.path for change in changes if not change.is_new]
        if modified:
            raise ChangedDeployedSchemasError(modified)

    def build_dist(self, env: str, build_all: bool = True) -> int:
        if build_all:
            count = self.dist_builder.build_all(env)
        else:
            self.check_changes(env)
            anchor = self.gitter.get_latest_anchor(env)
            count = self.dist_builder.build_changed(env, anchor)
        if count == 0:
            logger.info("No schemas to build")
        else:
            logger.info(f"Successfully built {count} schemas to the distribution directory")
        return count

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

"""Runs the test documents of schemas against their production rendering.

Three kinds of check exist:

* local: a schema's own ``pass/`` documents must validate and its ``fail/``
  documents must not;
* consumer-breaking: the ``pass/`` documents of *newer* versions in the same
  major version must validate against this schema, otherwise a consumer
  still on this version would reject what a newer producer emits;
* provider compatibility: this schema's ``pass/`` documents must validate
  against every *older* version in the same major version.
"""

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from ..exceptions import (
    InvalidTestDocumentDirectoryError,
    InvalidTestScopeError,
    OperationCancelledError,
)
from .key import Key, PathType
from .registry import Registry
from .results import TestReport
from .schema import RenderInfo, Schema, TestDocType, TestInfo
from .searcher import Searcher
from .semver import SemVer
from .spec import Spec

logger = logging.getLogger(__name__)


class TestScope(str, Enum):
    __test__ = False

    LOCAL = "local"
    PASS = "pass-only"
    FAIL = "fail-only"
    CONSUMER_BREAKING = "consumer-breaking"
    ALL = "all"

    @classmethod
    def from_string(cls, value: str) -> "TestScope":
        normalized = value.strip().lower()
        aliases = {"pass": cls.PASS, "fail": cls.FAIL}
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidTestScopeError(value) from None

    @property
    def runs_pass(self) -> bool:
        return self in (TestScope.LOCAL, TestScope.PASS, TestScope.ALL)

    @property
    def runs_fail(self) -> bool:
        return self in (TestScope.LOCAL, TestScope.FAIL, TestScope.ALL)

    @property
    def runs_breaking(self) -> bool:
        return self in (TestScope.CONSUMER_BREAKING, TestScope.ALL)


class _StopTesting(Exception):
    """Unwinds a run after the first failure when stop_on_first_error is set."""


class Tester:
    """Runs test documents for one or many schemas and collects a report.

    A tester accumulates results into :attr:`report`; use a new tester per run.
    """

    __test__ = False

    def __init__(self, registry: Registry, cancel_event: Optional[threading.Event] = None):
        self.registry = registry
        self.cancel_event = cancel_event
        self.scope = TestScope.LOCAL
        self.stop_on_first_error = True
        self.skip_compatible = False
        self.report = TestReport()

    def set_scope(self, scope: Union[TestScope, str]) -> None:
        self.scope = scope if isinstance(scope, TestScope) else TestScope.from_string(scope)

    def set_stop_on_first_error(self, stop: bool) -> None:
        self.stop_on_first_error = stop

    def set_skip_compatible(self, skip: bool) -> None:
        self.skip_compatible = skip

    # ---- entry points --------------------------------------------------------

    def test_single_schema(self, key: Key) -> TestReport:
        """Test one schema, then check it against earlier versions if it passed.

        Raises:
            OperationCancelledError: If the cancel event was set.
            JsonSchemaManagerError: If a schema or test document cannot be used.
        """
        self.report.start()
        try:
            self._test_key(key)
        except _StopTesting:
            pass
        finally:
            self.report.finish()
        return self.report

    def test_found_schemas(self, scope: str = "") -> TestReport:
        """Test every schema below ``scope`` into one report."""
        searcher = Searcher(self.registry, scope)
        self.report.start()
        try:
            for key in searcher.schemas():
                self._test_key(key)
        except _StopTesting:
            pass
        finally:
            self.report.finish()
        return self.report

    def test_specific_document(self, key: Key, doc_path: Union[str, Path]) -> TestReport:
        """Check one document from the ``pass/`` or ``fail/`` directory of ``key``.

        Raises:
            InvalidTestDocumentDirectoryError: If the document is elsewhere.
        """
        doc_path = Path(doc_path)
        try:
            doc_type = TestDocType(doc_path.parent.name)
        except ValueError:
            raise InvalidTestDocumentDirectoryError(doc_path) from None

        self.report.start()
        try:
            schema = self.registry.get_schema_by_key(key)
            render_info = schema.render(self.registry.env_config())
            spec = self._new_spec(schema, TestInfo.load(doc_path), doc_type)
            self._run_spec(key, spec, render_info)
        except _StopTesting:
            pass
        finally:
            self.report.finish()
        return self.report

    # ---- internals -----------------------------------------------------------

    def _test_key(self, key: Key) -> None:
        failures_before = self.report.failure_count(key)
        self._test_schema(key)
        if self.skip_compatible or self.report.failure_count(key) > failures_before:
            return
        self._test_compatible_with_earlier_versions(key)

    def _test_schema(self, key: Key) -> None:
        schema = self.registry.get_schema_by_key(key)
        render_info = schema.render(self.registry.env_config())
        for spec in self._specs_for_schema(schema):
            self._run_spec(key, spec, render_info)

    def _specs_for_schema(self, schema: Schema) -> List[Spec]:
        specs = []
        if self.scope.runs_pass:
            specs.extend(self._specs(schema, schema, TestDocType.PASS))
        if self.scope.runs_fail:
            specs.extend(self._specs(schema, schema, TestDocType.FAIL))
        if self.scope.runs_breaking and not self.skip_compatible:
            for future_key in schema.future_keys():
                future = self.registry.get_schema_by_key(future_key)
                specs.extend(
                    self._specs(schema, future, TestDocType.PASS, forward_version=future_key.version)
                )
        return specs

    def _specs(
        self,
        schema: Schema,
        docs_from: Schema,
        doc_type: TestDocType,
        forward_version: Optional[SemVer] = None,
    ) -> List[Spec]:
        return [
            self._new_spec(schema, test_info, doc_type, forward_version)
            for test_info in docs_from.test_documents(doc_type)
        ]

    @staticmethod
    def _new_spec(
        schema: Schema,
        test_info: TestInfo,
        doc_type: TestDocType,
        forward_version: Optional[SemVer] = None,
    ) -> Spec:
        return Spec(
            schema_key=schema.key,
            schema_path=schema.path(PathType.FILE_PATH),
            test_info=test_info,
            doc_type=doc_type,
            forward_version=forward_version,
        )

    def _test_compatible_with_earlier_versions(self, key: Key) -> None:
        target = self.registry.get_schema_by_key(key)
        pass_tests = target.test_documents(TestDocType.PASS)
        if not pass_tests:
            return
        for earlier_key in target.earlier_keys():
            earlier = self.registry.get_schema_by_key(earlier_key)
            render_info = earlier.render(self.registry.env_config())
            for test_info in pass_tests:
                spec = self._new_spec(earlier, test_info, TestDocType.PASS, key.version)
                self._run_spec(earlier_key, spec, render_info)

    def _run_spec(self, key: Key, spec: Spec, render_info: RenderInfo) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise OperationCancelledError("test run cancelled")
        if spec.run(render_info.validator) is None:
            self.report.add_passed(key, spec)
            return
        logger.debug(f"{key}: {spec.test_info.path} {spec.result_label()}")
        self.report.add_failed(key, spec)
        if self.stop_on_first_error:
            raise _StopTesting()

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

"""One test document checked against one compiled schema."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..exceptions import DocumentInvalidError, FailTestPassedError, PassTestFailedError, TestOutcomeError
from ..validator.compiler import Validator
from .key import Key
from .schema import TestDocType, TestInfo
from .semver import SemVer


@dataclass
class Spec:
    """A pass or fail expectation for a test document.

    ``forward_version`` is set when the document belongs to a different
    version of the family than the schema it is checked against.
    """

    schema_key: Key
    schema_path: Path
    test_info: TestInfo
    doc_type: TestDocType
    forward_version: Optional[SemVer] = None
    error: Optional[TestOutcomeError] = None

    @property
    def passed(self) -> bool:
        return self.error is None

    def run(self, validator: Validator) -> Optional[TestOutcomeError]:
        """Validate the document and record the outcome.

        Returns:
            ``None`` when the document behaved as expected, otherwise the
            recorded :class:`PassTestFailedError` or :class:`FailTestPassedError`.
            Other validator errors propagate.
        """
        self.error = None
        try:
            validator.validate(self.test_info.document)
        except DocumentInvalidError as exc:
            if self.doc_type == TestDocType.PASS:
                self.error = PassTestFailedError(self.schema_path, self.test_info.path, exc)
        else:
            if self.doc_type == TestDocType.FAIL:
                self.error = FailTestPassedError(self.schema_path, self.test_info.path)
        return self.error

    def result_label(self) -> str:
        if self.doc_type == TestDocType.PASS:
            if self.error is not None:
                if self.forward_version is not None:
                    return f"failed - future version {self.forward_version} introduced a breaking change!"
                return "failed"
            if self.forward_version is not None:
                return f"test from future version {self.forward_version} passed"
            return "passed"
        if self.error is not None:
            return "passed, when expected fail"
        return "failed, as expected"

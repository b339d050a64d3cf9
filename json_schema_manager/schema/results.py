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

"""Results of a test run."""

import threading
from datetime import datetime
from typing import Dict, List, Optional

from .key import Key
from .spec import Spec


class TestReport:
    """Container for the passed and failed specs of a test run, grouped by key."""

    __test__ = False

    def __init__(self):
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.passed_tests: Dict[Key, List[Spec]] = {}
        self.failed_tests: Dict[Key, List[Spec]] = {}
        self._lock = threading.Lock()

    def start(self) -> None:
        self.start_time = datetime.now()

    def finish(self) -> None:
        self.end_time = datetime.now()

    @property
    def duration(self) -> float:
        if self.start_time is None:
            return 0.0
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()

    def add_passed(self, key: Key, spec: Spec) -> None:
        with self._lock:
            self.passed_tests.setdefault(key, []).append(spec)

    def add_failed(self, key: Key, spec: Spec) -> None:
        with self._lock:
            self.failed_tests.setdefault(key, []).append(spec)

    @property
    def total_passed(self) -> int:
        return sum(len(specs) for specs in self.passed_tests.values())

    @property
    def total_failed(self) -> int:
        return sum(len(specs) for specs in self.failed_tests.values())

    @property
    def ok(self) -> bool:
        return not self.failed_tests

    def keys(self) -> List[Key]:
        return sorted(set(self.passed_tests) | set(self.failed_tests), key=str)

    def failure_count(self, key: Key) -> int:
        with self._lock:
            return len(self.failed_tests.get(key, ()))

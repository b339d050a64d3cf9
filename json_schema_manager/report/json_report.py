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

"""Machine readable test report."""

import json
from typing import Any, Dict, TextIO

from ..schema.results import TestReport
from .reporter import Reporter, format_duration


def _timestamp(value) -> str:
    return value.astimezone().isoformat(timespec="seconds") if value else ""


class JSONReporter(Reporter):
    def write(self, stream: TextIO, report: TestReport) -> None:
        results: Dict[str, Dict[str, Any]] = {}
        for key in report.keys():
            results[str(key)] = {
                "passed": [
                    {"path": str(spec.test_info.path), "type": spec.doc_type.value}
                    for spec in report.passed_tests.get(key, [])
                ],
                "failed": [
                    {
                        "path": str(spec.test_info.path),
                        "type": spec.doc_type.value,
                        "error": str(spec.error) if spec.error is not None else "",
                    }
                    for spec in report.failed_tests.get(key, [])
                ],
            }

        output = {
            "startTime": _timestamp(report.start_time),
            "endTime": _timestamp(report.end_time),
            "duration": format_duration(report.duration),
            "stats": {
                "totalPassed": report.total_passed,
                "totalFailed": report.total_failed,
            },
            "results": results,
        }
        json.dump(output, stream, indent=2)
        stream.write("\n")

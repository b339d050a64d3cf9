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

"""Human readable test report."""

from typing import TextIO

from ..schema.key import SCHEMA_SUFFIX
from ..schema.results import TestReport
from .reporter import Reporter, format_duration

RESET = "\033[0m"
RED = "\033[31m"
GREEN = "\033[32m"
GREY = "\033[90m"
WHITE = "\033[37m"
BOLD_RED = "\033[1;31m"
BOLD_GREEN = "\033[1;32m"
BOLD_WHITE = "\033[1;37m"

DIVIDER = "-" * 40


class TextReporter(Reporter):
    def __init__(self, verbose: bool = False, use_colour: bool = False):
        self.verbose = verbose
        self.use_colour = use_colour

    def _c(self, colour: str, text: str) -> str:
        if not self.use_colour:
            return text
        return f"{colour}{text}{RESET}"

    def write(self, stream: TextIO, report: TestReport) -> None:
        started = report.start_time.strftime("%H:%M:%S") if report.start_time else "-"
        stream.write(f"{DIVIDER}\n")
        stream.write(self._c(BOLD_WHITE, "JSM TEST REPORT\n\n"))
        stream.write(f"{self._c(GREY, 'Started: ')} {self._c(WHITE, started)}\n")
        stream.write(f"{self._c(GREY, 'Duration:')} {self._c(WHITE, format_duration(report.duration))}\n")
        stream.write(f"{DIVIDER}\n")

        for key in report.keys():
            passed = report.passed_tests.get(key, [])
            failed = report.failed_tests.get(key, [])

            status, status_colour, key_colour = "PASS", GREEN, WHITE
            if failed:
                status, status_colour, key_colour = "FAIL", RED, RED

            counts = f"(pass: {len(passed)}, fail: {len(failed)})"
            stream.write(
                f"{self._c(status_colour, f'[{status}]')} "
                f"{self._c(key_colour, f'{key}{SCHEMA_SUFFIX}')} "
                f"{self._c(status_colour, counts)}\n"
            )

            if self.verbose:
                for spec in passed:
                    stream.write(
                        f"  {self._c(GREEN, '✓')} {self._c(GREY, str(spec.test_info.path))} "
                        f"({self._c(GREEN, spec.result_label())})\n"
                    )
            for spec in failed:
                stream.write(
                    f"  {self._c(RED, '✗')} {self._c(GREY, str(spec.test_info.path))} "
                    f"({self._c(RED, spec.result_label())}):\n"
                )
                stream.write(f"    {spec.error}\n")

        stats = f"{report.total_passed} passed, {report.total_failed} failed"
        stats_colour = BOLD_RED if report.total_failed else BOLD_GREEN
        stream.write(f"{DIVIDER}\n")
        stream.write(f"{self._c(BOLD_WHITE, 'Test summary: ')}{self._c(stats_colour, stats)}\n")
        stream.write(f"{DIVIDER}\n")

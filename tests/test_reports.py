"""Tests for the text and JSON report writers."""

import io
import json

import pytest

from json_schema_manager.report import JSONReporter, TextReporter, get_reporter
from json_schema_manager.report.reporter import format_duration
from json_schema_manager.report.text import DIVIDER, RED
from json_schema_manager.schema.tester import Tester


@pytest.fixture
def failing_report(person_registry, writer):
    writer.document("people_person_1_0_0", "fail", "anything.json", {"name": "fine"})
    tester = Tester(person_registry)
    tester.set_stop_on_first_error(False)
    tester.set_skip_compatible(True)
    return tester.test_found_schemas()


class TestTextReporter:
    def test_summary(self, failing_report):
        out = io.StringIO()
        TextReporter().write(out, failing_report)
        text = out.getvalue()

        assert text.startswith(DIVIDER + "\nJSM TEST REPORT")
        assert "[FAIL] people_person_1_0_0.schema.json (pass: 2, fail: 1)" in text
        assert "[PASS] people_person_1_1_0.schema.json (pass: 2, fail: 0)" in text
        assert "anything.json (passed, when expected fail):" in text
        assert "Test summary: 4 passed, 1 failed" in text
        assert "\033[" not in text

    def test_verbose_lists_passing_documents(self, failing_report):
        out = io.StringIO()
        TextReporter(verbose=True).write(out, failing_report)
        assert "named.json (passed)" in out.getvalue()
        assert "nameless.json (failed, as expected)" in out.getvalue()

    def test_colour(self, failing_report):
        out = io.StringIO()
        TextReporter(use_colour=True).write(out, failing_report)
        assert RED in out.getvalue()


class TestJSONReporter:
    def test_structure(self, failing_report):
        out = io.StringIO()
        JSONReporter().write(out, failing_report)
        data = json.loads(out.getvalue())

        assert data["stats"] == {"totalPassed": 4, "totalFailed": 1}
        assert set(data) == {"startTime", "endTime", "duration", "stats", "results"}
        failed = data["results"]["people_person_1_0_0"]["failed"]
        assert failed[0]["type"] == "fail"
        assert failed[0]["path"].endswith("anything.json")
        assert "should fail" in failed[0]["error"]


class TestGetReporter:
    def test_formats(self):
        assert isinstance(get_reporter("json"), JSONReporter)
        assert isinstance(get_reporter("text", verbose=True), TextReporter)
        with pytest.raises(ValueError):
            get_reporter("xml")

    def test_format_duration(self):
        assert format_duration(0.0125) == "12.5ms"
        assert format_duration(2.5) == "2.500s"

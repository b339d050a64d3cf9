"""Tests for the jsm command line."""

import json
import logging

import pytest

from json_schema_manager import cli
from json_schema_manager.cli import build_parser, main
from json_schema_manager.schema.key import Key, PathType


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def run_cli(*argv):
    with pytest.raises(SystemExit) as excinfo:
        main(list(argv))
    return excinfo.value.code


class TestParser:
    def test_create_schema_version_target_is_optional(self):
        args = build_parser().parse_args(["create-schema-version", "MINOR", "-k", "a_b_1_0_0"])
        assert args.target == ""
        assert args.release_type == "minor"
        assert args.key == "a_b_1_0_0"

        args = build_parser().parse_args(["create-schema-version", "people/person", "patch"])
        assert args.target == "people/person"

    def test_requires_a_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestCommands:
    def test_create_registry(self, tmp_path, capsys, monkeypatch):
        monkeypatch.delenv("JSM_LOG_FILE", raising=False)
        assert run_cli("create-registry", str(tmp_path / "reg")) == 0
        assert (tmp_path / "reg" / "json-schema-manager-config.yml").is_file()
        assert "export JSM_REGISTRY_ROOT_DIR=" in capsys.readouterr().out

        assert run_cli("create-registry", str(tmp_path / "reg")) == 1
        assert "Error:" in capsys.readouterr().err

    def test_create_schema_and_version(self, registry_root):
        assert run_cli("-r", str(registry_root), "create-schema", "payments/charge") == 0
        assert run_cli("-r", str(registry_root), "create-schema-version", "payments/charge", "minor") == 0

        key = Key.parse("payments_charge_1_1_0")
        assert key.path(PathType.FILE_PATH, registry_root).is_file()

    def test_registry_from_environment(self, registry_root, monkeypatch):
        monkeypatch.setenv("JSM_REGISTRY_ROOT_DIR", str(registry_root))
        assert run_cli("create-schema", "payments/refund") == 0

    def test_render_schema(self, person_registry, registry_root, capsys):
        code = run_cli("-r", str(registry_root), "render-schema", "-k", "people_person_1_0_0", "-e", "dev")
        assert code == 0
        rendered = json.loads(capsys.readouterr().out)
        assert rendered["$id"] == (
            "https://dev.json-schemas.internal.example.com/people_person_1_0_0.schema.json"
        )

    def test_render_scope_is_an_error(self, person_registry, registry_root, capsys):
        assert run_cli("-r", str(registry_root), "render-schema", "people") == 1
        assert "Error:" in capsys.readouterr().err

    def test_validate(self, person_registry, registry_root, capsys):
        assert run_cli("-r", str(registry_root), "--nocolour", "validate", "all") == 0
        assert "Test summary: 5 passed, 0 failed" in capsys.readouterr().out

    def test_validate_json_with_failures(self, person_registry, registry_root, writer, capsys):
        writer.document("people_person_1_0_0", "pass", "wrong.json", {"name": 1})
        code = run_cli(
            "-r", str(registry_root), "validate", "-s", "people", "-C", "--skip-compatible", "-o", "json"
        )
        assert code == 1
        assert '"totalFailed": 1' in capsys.readouterr().out

    def test_invalid_test_scope(self, person_registry, registry_root, capsys):
        assert run_cli("-r", str(registry_root), "validate", "all", "-t", "nope") == 1
        assert "Error:" in capsys.readouterr().err

    def test_build_dist(self, person_registry, registry_root):
        assert run_cli("-r", str(registry_root), "build-dist", "-e", "prod", "--workers", "2") == 0
        dist = registry_root.parent / "dist" / "prod" / "private"
        assert sorted(p.name for p in dist.iterdir()) == [
            "people_person_1_0_0.schema.json",
            "people_person_1_1_0.schema.json",
        ]

    def test_debug_log_file(self, person_registry, registry_root):
        assert run_cli("-r", str(registry_root), "--debug", "validate", "people_person_1_0_0") == 0
        assert (registry_root / ".jsm.log").is_file()

    def test_os_errors_exit_with_failure(self, person_registry, registry_root, monkeypatch, capsys):
        def denied(args, cancel_event):
            raise PermissionError(13, "Permission denied", str(registry_root / "people"))

        monkeypatch.setattr(cli, "run", denied)
        assert run_cli("-r", str(registry_root), "validate", "all") == 1
        assert "Permission denied" in capsys.readouterr().err

    def test_missing_registry(self, tmp_path, capsys):
        assert run_cli("-r", str(tmp_path / "missing"), "validate", "all") == 1
        assert "Error:" in capsys.readouterr().err

"""Shared fixtures: a throwaway registry and helpers to populate it."""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import pytest

from json_schema_manager.config import create_registry
from json_schema_manager.schema.key import Key, PathType
from json_schema_manager.schema.registry import Registry

DRAFT7 = "http://json-schema.org/draft-07/schema#"


def object_schema(properties: Dict[str, Any], required: Iterable[str] = (), **extra) -> Dict[str, Any]:
    document = {
        "$schema": DRAFT7,
        "$id": "{{ ID }}",
        "type": "object",
        "properties": properties,
    }
    if required:
        document["required"] = list(required)
    document.update(extra)
    return document


class SchemaWriter:
    """Writes schema files and test documents straight into a registry root."""

    def __init__(self, root: Path):
        self.root = root

    def home(self, key: str) -> Path:
        return Key.parse(key).path(PathType.HOME_DIR, self.root)

    def schema(
        self,
        key: str,
        document: Any = None,
        passing: Optional[Dict[str, Any]] = None,
        failing: Optional[Dict[str, Any]] = None,
        raw: Optional[str] = None,
    ) -> Path:
        parsed = Key.parse(key)
        path = parsed.path(PathType.FILE_PATH, self.root)
        path.parent.mkdir(parents=True, exist_ok=True)
        if raw is None:
            if document is None:
                document = object_schema({"name": {"type": "string"}})
            raw = json.dumps(document, indent=2)
        path.write_text(raw, encoding="utf-8")
        for directory in ("pass", "fail"):
            (path.parent / directory).mkdir(exist_ok=True)
        for name, doc in (passing or {}).items():
            self.document(key, "pass", name, doc)
        for name, doc in (failing or {}).items():
            self.document(key, "fail", name, doc)
        return path

    def document(self, key: str, doc_type: str, name: str, document: Any) -> Path:
        path = self.home(key) / doc_type / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document), encoding="utf-8")
        return path


@pytest.fixture
def registry_root(tmp_path, monkeypatch) -> Path:
    monkeypatch.delenv("JSM_REGISTRY_ROOT_DIR", raising=False)
    monkeypatch.delenv("JSM_LOG_FILE", raising=False)
    root = tmp_path / "registry"
    create_registry(root)
    return root.resolve()


@pytest.fixture
def writer(registry_root) -> SchemaWriter:
    return SchemaWriter(registry_root)


@pytest.fixture
def registry(registry_root) -> Registry:
    return Registry(registry_root, environ={})


@pytest.fixture
def person_registry(registry, writer) -> Registry:
    """Registry holding one family ``people_person`` with versions 1.0.0 and 1.1.0."""
    writer.schema(
        "people_person_1_0_0",
        object_schema({"name": {"type": "string"}}, required=["name"]),
        passing={"named.json": {"name": "Ada"}},
        failing={"nameless.json": {}},
    )
    writer.schema(
        "people_person_1_1_0",
        object_schema(
            {"name": {"type": "string"}, "age": {"type": "integer"}},
            required=["name"],
        ),
        passing={"aged.json": {"name": "Ada", "age": 36}},
        failing={"bad-age.json": {"name": "Ada", "age": "old"}},
    )
    return registry


class FakeObserver:
    """Stands in for a watchdog observer; tests feed events to the handler."""

    def __init__(self):
        self.handler = None
        self.path = None
        self.recursive = None
        self.started = False
        self.stopped = False

    def schedule(self, handler, path, recursive=False):
        self.handler = handler
        self.path = path
        self.recursive = recursive

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def join(self, timeout=None):
        pass

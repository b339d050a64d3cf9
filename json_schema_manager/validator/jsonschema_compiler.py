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

"""Compiler backed by the ``jsonschema`` and ``referencing`` libraries."""

import logging
import threading
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator, validators
from jsonschema.exceptions import SchemaError, best_match
from referencing import Registry
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT7, specification_with

from ..exceptions import DocumentInvalidError, SchemaCompileError, UnresolvableReferenceError
from .compiler import Compiler, Draft, Validator

logger = logging.getLogger(__name__)


class JsonschemaValidator(Validator):
    """Validator for one compiled schema id.

    References are resolved against the compiler's documents at validation
    time, so schemas that reference each other in a cycle, or that are added
    after this one was compiled, resolve correctly.
    """

    def __init__(self, compiler: "JsonschemaCompiler", schema_id: str, schema: Any, validator_cls):
        self._compiler = compiler
        self.schema_id = schema_id
        self.schema = schema
        self._validator_cls = validator_cls

    def validate(self, document: Any) -> None:
        validator = self._validator_cls(self.schema, registry=self._compiler.registry())
        try:
            error = best_match(validator.iter_errors(document))
        except Unresolvable as exc:
            raise UnresolvableReferenceError(self.schema_id, str(exc)) from exc
        if error is not None:
            raise DocumentInvalidError(error.message, error.json_path)


class JsonschemaCompiler(Compiler):
    def __init__(self):
        self._documents: Dict[str, Any] = {}
        self._registry: Optional[Registry] = None
        self._lock = threading.Lock()

    def supported_schema_versions(self) -> List[str]:
        return [draft.value for draft in Draft]

    def add_schema(self, schema_id: str, document: Any) -> None:
        if not isinstance(document, (dict, bool)):
            raise SchemaCompileError(
                schema_id, f"a schema must be an object or a boolean, got {type(document).__name__}"
            )
        with self._lock:
            self._documents[schema_id] = document
            self._registry = None
        logger.debug(f"Added schema {schema_id}")

    def compile(self, schema_id: str) -> Validator:
        with self._lock:
            if schema_id not in self._documents:
                raise SchemaCompileError(schema_id, "schema has not been added")
            schema = self._documents[schema_id]

        validator_cls = validators.validator_for(schema, default=Draft7Validator)
        try:
            validator_cls.check_schema(schema)
        except SchemaError as exc:
            raise SchemaCompileError(schema_id, exc.message) from exc
        return JsonschemaValidator(self, schema_id, schema, validator_cls)

    def clear(self) -> None:
        with self._lock:
            self._documents.clear()
            self._registry = None

    def registry(self) -> Registry:
        """Registry of every added document, rebuilt after changes."""
        with self._lock:
            if self._registry is None:
                resources = []
                for schema_id, document in self._documents.items():
                    dialect = document.get("$schema", "") if isinstance(document, dict) else ""
                    specification = specification_with(dialect, default=DRAFT7)
                    resources.append((schema_id, specification.create_resource(document)))
                self._registry = Registry().with_resources(resources)
            return self._registry

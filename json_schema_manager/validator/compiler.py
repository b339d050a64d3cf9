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

"""Validation capability used by the registry.

The registry only needs to hand rendered schema documents to a compiler,
compile them by canonical id, and validate test documents against the
result.  Any JSON Schema implementation can be plugged in behind these two
interfaces.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List


class Draft(str, Enum):
    """Meta-schema URIs of the supported JSON Schema drafts."""

    DRAFT4 = "http://json-schema.org/draft-04/schema#"
    DRAFT6 = "http://json-schema.org/draft-06/schema#"
    DRAFT7 = "http://json-schema.org/draft-07/schema#"
    DRAFT2019_09 = "https://json-schema.org/draft/2019-09/schema"
    DRAFT2020_12 = "https://json-schema.org/draft/2020-12/schema"


DEFAULT_DRAFT = Draft.DRAFT7


class Validator(ABC):
    """A compiled schema."""

    @abstractmethod
    def validate(self, document: Any) -> None:
        """Validate ``document``.

        Raises:
            DocumentInvalidError: If the document does not conform.
        """


class Compiler(ABC):
    """Collects schema documents by id and compiles them into validators."""

    @abstractmethod
    def supported_schema_versions(self) -> List[str]:
        ...

    @abstractmethod
    def add_schema(self, schema_id: str, document: Any) -> None:
        """Register ``document`` under ``schema_id``, replacing any previous one."""

    @abstractmethod
    def compile(self, schema_id: str) -> Validator:
        """Compile a previously added schema.

        Raises:
            SchemaCompileError: If the schema is unknown or not a valid schema.
        """

    @abstractmethod
    def clear(self) -> None:
        """Forget every added schema."""

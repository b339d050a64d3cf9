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

"""Renders schema sources into environment specific documents."""

import json
import logging
from typing import TYPE_CHECKING, Any, Tuple

from ..exceptions import (
    InvalidInputError,
    InvalidJSONError,
    JSMArgInvalidKeyError,
    JSMArgNotFoundError,
    JsonSchemaManagerError,
    TemplateExecutionFailedError,
)
from .key import Key, PathType
from .template import Directive, DirectiveKind

if TYPE_CHECKING:
    from ..config.config import EnvConfig
    from .schema import Schema

logger = logging.getLogger(__name__)


class Renderer:
    """Substitutes the directives of one schema for one environment.

    ``resolving`` holds the keys whose render is in progress further up the
    call chain.  A JSM reference to one of them is replaced by its canonical
    id without rendering it again, which lets schemas reference each other.
    """

    def __init__(self, schema: "Schema", env_config: "EnvConfig", resolving: Tuple[Key, ...] = ()):
        self.schema = schema
        self.env_config = env_config
        self.resolving = resolving + (schema.key,)

    @property
    def _path(self):
        return self.schema.path(PathType.FILE_PATH)

    def render(self) -> Tuple[bytes, Any]:
        """Return the rendered bytes and the parsed document.

        Raises:
            TemplateExecutionFailedError: A directive has the wrong arguments.
            JSMArgInvalidKeyError: A JSM argument is not a valid key.
            JSMArgNotFoundError: A referenced schema cannot be loaded.
            InvalidJSONError: The rendered text is not JSON.
        """
        text = self.schema.template.substitute(self._resolve)
        try:
            document = json.loads(text)
        except ValueError as exc:
            raise InvalidJSONError(self._path, f"rendered output: {exc}") from exc
        return text.encode("utf-8"), document

    def _resolve(self, directive: Directive) -> str:
        if directive.kind == DirectiveKind.ID:
            if directive.arguments:
                raise TemplateExecutionFailedError(
                    self._path,
                    f"wrong number of args for ID: want 0 got {len(directive.arguments)}",
                )
            return self.schema.canonical_id(self.env_config)
        return self._resolve_jsm(directive)

    def _resolve_jsm(self, directive: Directive) -> str:
        if len(directive.arguments) != 1:
            raise TemplateExecutionFailedError(
                self._path,
                f"wrong number of args for JSM: want 1 got {len(directive.arguments)}",
            )
        argument = directive.arguments[0]
        if not argument.is_string:
            raise TemplateExecutionFailedError(
                self._path,
                f"wrong type for value in JSM {argument.raw}: expected string",
            )

        try:
            key = Key.parse(argument.value)
        except InvalidInputError as exc:
            raise JSMArgInvalidKeyError(argument.value, exc) from exc

        registry = self.schema.registry
        try:
            referenced = registry.get_schema_by_key(key)
        except (JsonSchemaManagerError, OSError) as exc:
            raise JSMArgNotFoundError(key, exc) from exc

        if key in self.resolving:
            logger.debug(f"{self.schema.key} -> {key}: reference back into the render chain")
        else:
            registry.coordinate_render(referenced, self.env_config, self.resolving)
        return referenced.canonical_id(self.env_config)

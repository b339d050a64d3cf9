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

"""Schema source directives.

Schema sources are JSON documents that may contain two directives::

    "$id": "{{ ID }}"
    "$ref": "{{ JSM `domain_family_1_0_0` }}"

A source is parsed once into a :class:`ParsedTemplate` (the ordered list of
directives and the literal text between them).  Substitution is a separate
pass that asks a resolver callback for the replacement text of each
directive, so syntax problems are found before any reference is followed.
"""

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..exceptions import TemplateFormatInvalidError

OPEN_DELIM = "{{"
CLOSE_DELIM = "}}"

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<dstring>"(?:[^"\\\n]|\\.)*")
  | (?P<rstring>`[^`]*`)
  | (?P<number>-?[0-9]+(?:\.[0-9]+)?)
    """,
    re.VERBOSE,
)


class DirectiveKind(str, Enum):
    ID = "ID"
    JSM = "JSM"
    COMMENT = "comment"


@dataclass(frozen=True)
class Argument:
    """One argument token of a directive."""

    raw: str
    value: Optional[str] = None

    @property
    def is_string(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class Directive:
    kind: DirectiveKind
    start: int
    end: int
    arguments: Tuple[Argument, ...] = ()


@dataclass(frozen=True)
class ParsedTemplate:
    source: str
    directives: Tuple[Directive, ...]

    def substitute(self, resolve: Callable[[Directive], str]) -> str:
        """Return the source with every directive replaced by ``resolve(directive)``.

        Exceptions raised by ``resolve`` propagate unchanged.
        """
        pieces: List[str] = []
        pos = 0
        for directive in self.directives:
            pieces.append(self.source[pos:directive.start])
            if directive.kind != DirectiveKind.COMMENT:
                pieces.append(resolve(directive))
            pos = directive.end
        pieces.append(self.source[pos:])
        return "".join(pieces)


def _tokenize(action: str, name, offset: int) -> List[Tuple[str, str]]:
    tokens = []
    pos = 0
    while pos < len(action):
        match = _TOKEN_RE.match(action, pos)
        if match is None:
            if action[pos] in "\"`":
                raise TemplateFormatInvalidError(name, f"unterminated string at offset {offset + pos}")
            raise TemplateFormatInvalidError(
                name, f"unexpected {action[pos]!r} in action at offset {offset + pos}"
            )
        kind = match.lastgroup
        if kind != "ws":
            tokens.append((kind, match.group()))
        pos = match.end()
    return tokens


def _parse_action(action: str, name, start: int, end: int) -> Directive:
    stripped = action.strip()
    if stripped.startswith("/*"):
        if not stripped.endswith("*/"):
            raise TemplateFormatInvalidError(name, f"unclosed comment at offset {start}")
        return Directive(DirectiveKind.COMMENT, start, end)

    tokens = _tokenize(action, name, start + len(OPEN_DELIM))
    if not tokens:
        raise TemplateFormatInvalidError(name, f"missing value for command at offset {start}")

    kind, value = tokens[0]
    if kind != "ident":
        raise TemplateFormatInvalidError(name, f"unexpected {value} at offset {start}: expected ID or JSM")
    try:
        directive_kind = DirectiveKind(value)
    except ValueError:
        raise TemplateFormatInvalidError(name, f'function "{value}" not defined') from None
    if directive_kind == DirectiveKind.COMMENT:
        raise TemplateFormatInvalidError(name, f'function "{value}" not defined')

    arguments = []
    for token_kind, token in tokens[1:]:
        if token_kind == "dstring":
            try:
                arguments.append(Argument(token, json.loads(token)))
            except ValueError:
                raise TemplateFormatInvalidError(name, f"invalid string literal {token}") from None
        elif token_kind == "rstring":
            arguments.append(Argument(token, token[1:-1]))
        elif token_kind == "ident" and token not in (DirectiveKind.ID.value, DirectiveKind.JSM.value):
            raise TemplateFormatInvalidError(name, f'function "{token}" not defined')
        else:
            arguments.append(Argument(token))
    return Directive(directive_kind, start, end, tuple(arguments))


def parse_template(source: str, name="<template>") -> ParsedTemplate:
    """Parse the directives of a schema source.

    Args:
        source: Schema source text.
        name: Used in error messages, normally the schema file path.

    Raises:
        TemplateFormatInvalidError: On unclosed actions, empty actions,
            unterminated strings, unknown functions or unexpected tokens.
    """
    directives = []
    pos = 0
    while True:
        start = source.find(OPEN_DELIM, pos)
        if start < 0:
            break
        close = source.find(CLOSE_DELIM, start + len(OPEN_DELIM))
        if close < 0:
            raise TemplateFormatInvalidError(name, f"unclosed action starting at offset {start}")
        end = close + len(CLOSE_DELIM)
        action = source[start + len(OPEN_DELIM):close]
        directives.append(_parse_action(action, name, start, end))
        pos = end
    return ParsedTemplate(source, tuple(directives))

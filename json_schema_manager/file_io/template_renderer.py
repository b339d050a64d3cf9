"""Template rendering utilities for the files the manager scaffolds on disk."""

from __future__ import annotations

import json
import os

from jinja2 import Environment, FileSystemLoader, StrictUndefined


def _get_template_directories() -> list[str]:
    """Resolve template search paths.

    Templates are bundled in-package next to this module.
    """

    # Base dir is .../json_schema_manager/file_io
    base_dir = os.path.dirname(os.path.abspath(__file__))
    template_dir = os.path.join(base_dir, "templates")

    if os.path.exists(template_dir):
        return [template_dir]
    return []


def tojson_filter(value, indent=None):
    """Jinja2 filter to serialize values to JSON."""

    return json.dumps(value, indent=indent)


class TemplateRenderer:
    """Unified template rendering utility."""

    def __init__(self, template_dir: str | list[str] | None = None):
        if template_dir is None:
            template_dirs = _get_template_directories()
        elif isinstance(template_dir, str):
            template_dirs = [template_dir]
        else:
            template_dirs = list(template_dir)

        self.template_dirs = template_dirs
        self.env = Environment(
            loader=FileSystemLoader(self.template_dirs),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            newline_sequence="\n",
            autoescape=False,
            undefined=StrictUndefined,
        )
        self.env.filters["tojson"] = tojson_filter

    def render_template(self, template_name: str, **kwargs) -> str:
        template = self.env.get_template(template_name)
        return template.render(**kwargs)

    def render_template_to_file(
        self, template_name: str, output_path: str, *, overwrite: bool = False, **kwargs
    ) -> None:
        content = self.render_template(template_name, **kwargs)
        os.makedirs(os.path.dirname(output_path), exist_ok=True)
        mode = "w" if overwrite else "x"
        with open(output_path, mode, encoding="utf-8") as f:
            f.write(content)

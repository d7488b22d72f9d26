"""Template and static-file backend for generated projects.

``TemplateRenderer`` loads Jinja2 templates from the bundled
``workspace_generator/templates/`` directory (or an override) and serves raw
bytes for files that are copied verbatim.  Undefined template variables are
errors, so a render operation with missing context fails instead of writing
a silently incomplete file.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders ``.j2`` templates and reads static sources under one root."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["title_case"] = _title_case_filter

    def render(self, template_id: str, context: Mapping[str, Any]) -> str:
        """Render the template *template_id* with *context*.

        Raises:
            jinja2.TemplateNotFound: The template does not exist.
            jinja2.UndefinedError: The template references a missing variable.
        """
        template = self.env.get_template(template_id)
        return template.render(**context)

    def read_static(self, source: str) -> bytes:
        """Return the raw bytes of a static source file.

        Raises:
            FileNotFoundError: The source does not exist under the template root.
        """
        path = self.template_dir / source
        if not path.is_file():
            raise FileNotFoundError(f"Static template source not found: {source}")
        return path.read_bytes()

    def exists(self, source: str) -> bool:
        return (self.template_dir / source).is_file()


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _title_case_filter(value: str) -> str:
    """Convert ``my-app`` to ``My App``."""
    parts = re.split(r"[-_\s]+", value)
    return " ".join(word.capitalize() for word in parts if word)

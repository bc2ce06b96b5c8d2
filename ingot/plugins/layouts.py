"""Layout plugin.

Wraps the contents of HTML files in Jinja2 layout templates. The layout is named
in a file's front-matter (``layout: simple``); templates see the global metadata,
the file's own metadata and its rendered ``contents``.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound, select_autoescape
from markupsafe import Markup

from ..content import FileMap, FileRecord
from ..utils import match_path

_LAYOUT_SUFFIXES = ("", ".html", ".njk", ".jinja", ".html.jinja")


class Layouts:
    """Applies layout templates to files.

    Attributes:
        directory: Directory containing layouts (and partials they include).
        pattern: Files that receive a layout.
        default: Layout used when a file names none; None leaves such files alone.
        env: Jinja2 environment.
    """

    name = "layouts"

    def __init__(
        self,
        directory: Path,
        pattern: str | list[str] = "**/*.html",
        default: str | None = None,
        filters: dict[str, Callable[..., Any]] | None = None,
        globals: dict[str, Any] | None = None,
    ):
        self.directory = directory
        self.pattern = pattern
        self.default = default
        self.env = Environment(
            loader=FileSystemLoader(str(directory)),
            autoescape=select_autoescape(["html", "xml", "njk", "jinja"]),
            enable_async=False,
        )
        self.env.filters.update(filters or {})
        self.env.globals.update(globals or {})

    def resolve(self, layout: str) -> Template:
        """Resolve a layout name to a template.

        Args:
            layout: Layout name, with or without extension.

        Returns:
            Jinja2 Template object.

        Raises:
            TemplateNotFound: If no candidate file exists.
        """
        for suffix in _LAYOUT_SUFFIXES:
            try:
                return self.env.get_template(f"{layout}{suffix}")
            except TemplateNotFound:
                continue
        raise TemplateNotFound(f"{layout} (looked in {self.directory})")

    def render(self, record: FileRecord, layout: str, metadata: dict[str, Any]) -> str:
        context = {
            **metadata,
            **record.metadata,
            "contents": Markup(record.text),
        }
        return self.resolve(layout).render(**context)

    def apply(self, files: FileMap, metadata: dict[str, Any]) -> FileMap:
        for path, record in files.items():
            if not match_path(path, self.pattern):
                continue
            layout = record.get("layout") or self.default
            if not layout:
                continue
            record.text = self.render(record, str(layout), metadata)
        return files

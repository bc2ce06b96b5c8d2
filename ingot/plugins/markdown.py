"""Markdown conversion plugin.

Renders Markdown files to HTML with mistune and renames them from ``.md`` to
``.html``. Fenced code is emitted as ``<pre><code class="language-X">`` so that the
highlighting plugin can pick it up after layouts are applied.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Any

import mistune

from ..content import FileMap
from ..utils import match_path


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _SiteRenderer(mistune.HTMLRenderer):
    """HTML renderer that records headings and leaves code for the highlighter.

    Attributes:
        heading_ids: Whether to add ``id`` attributes to headings.
        headings: Headings seen while rendering, in document order.
    """

    def __init__(self, heading_ids: bool = False):
        super().__init__(escape=False)
        self.heading_ids = heading_ids
        self.headings: list[dict[str, Any]] = []
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading and track it for a table of contents.

        Args:
            text: Heading text content.
            level: Heading level (1-6).
            **attrs: Additional attributes.

        Returns:
            HTML heading tag.
        """
        base_id = _generate_heading_id(text)

        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        self.headings.append({"id": heading_id, "text": text, "level": level})

        if self.heading_ids:
            return f'<h{level} id="{heading_id}">{text}</h{level}>\n'
        return f"<h{level}>{text}</h{level}>\n"

    def block_code(self, code: str, info: str | None = None) -> str:
        escaped = code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        lang = info.split()[0] if info and info.strip() else ""
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


class Markdown:
    """Converts Markdown files to HTML.

    Attributes:
        pattern: Files to convert.
        heading_ids: Add anchor ids to rendered headings.
    """

    name = "markdown"

    def __init__(self, pattern: str | list[str] = "**/*.md", heading_ids: bool = False):
        self.pattern = pattern
        self.heading_ids = heading_ids

    def render(self, text: str) -> tuple[str, list[dict[str, Any]]]:
        """Render Markdown to HTML.

        Args:
            text: Markdown source.

        Returns:
            Tuple of (rendered HTML, list of heading dicts).
        """
        renderer = _SiteRenderer(self.heading_ids)
        markdown = mistune.create_markdown(
            renderer=renderer, plugins=["strikethrough", "footnotes", "table", "url"]
        )
        return markdown(text), renderer.headings

    def apply(self, files: FileMap, metadata: dict[str, Any]) -> FileMap:
        for path in [p for p in files if match_path(p, self.pattern)]:
            record = files.pop(path)
            html, headings = self.render(record.text)
            record.text = html
            record.metadata["headings"] = headings
            target = str(PurePosixPath(path).with_suffix(".html"))
            files[target] = record
        return files

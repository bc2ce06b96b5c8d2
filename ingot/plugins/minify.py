"""HTML minification plugin (production builds)."""

from __future__ import annotations

from typing import Any

import minify_html

from ..content import FileMap
from ..utils import match_path


class HtmlMinifier:
    """Minifies HTML files with minify-html.

    Attributes:
        pattern: Files to minify.
    """

    name = "html-minifier"

    def __init__(self, pattern: str | list[str] = "**/*.html"):
        self.pattern = pattern

    def apply(self, files: FileMap, metadata: dict[str, Any]) -> FileMap:
        for path, record in files.items():
            if match_path(path, self.pattern):
                record.text = minify_html.minify(record.text)
        return files

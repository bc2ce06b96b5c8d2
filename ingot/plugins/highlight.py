"""Syntax highlighting plugin.

Runs after layouts so it sees final HTML. Code blocks marked with a
``language-X`` class are replaced by Pygments output.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Any

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from ..content import FileMap
from ..utils import match_path

logger = logging.getLogger(__name__)

CODE_BLOCK_RE = re.compile(
    r'<pre><code class="language-(?P<lang>[\w+#.-]+)">(?P<code>.*?)</code></pre>',
    re.DOTALL,
)


class Highlight:
    """Highlights fenced code blocks in HTML files with Pygments.

    Attributes:
        pattern: Files to process.
        line_numbers: Prefix each line with its number.
        decode: Unescape HTML entities before handing code to the lexer.
    """

    name = "highlight"

    def __init__(
        self,
        pattern: str | list[str] = "**/*.html",
        line_numbers: bool = False,
        decode: bool = True,
    ):
        self.pattern = pattern
        self.line_numbers = line_numbers
        self.decode = decode
        self.formatter = HtmlFormatter(
            cssclass="highlight",
            linenos="inline" if line_numbers else False,
        )

    def highlight_html(self, text: str) -> str:
        """Replace every recognised code block in an HTML document."""

        def repl(match: re.Match) -> str:
            lang = match.group("lang")
            code = match.group("code")
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                logger.debug("No lexer for %r; leaving block unhighlighted", lang)
                return match.group(0)
            source = html.unescape(code) if self.decode else code
            return highlight(source, lexer, self.formatter)

        return CODE_BLOCK_RE.sub(repl, text)

    def css(self) -> str:
        """Return Pygments CSS styles for the ``.highlight`` class."""
        return self.formatter.get_style_defs(".highlight")

    def apply(self, files: FileMap, metadata: dict[str, Any]) -> FileMap:
        for path, record in files.items():
            if not match_path(path, self.pattern):
                continue
            text = record.text
            if "language-" not in text:
                continue
            record.text = self.highlight_html(text)
        return files

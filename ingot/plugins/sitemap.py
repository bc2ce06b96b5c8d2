"""Sitemap plugin (production builds).

Adds a ``sitemap.xml`` following the sitemaps.org protocol to the file map, listing
every matched page with its URL, last modification date, change frequency and
priority.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from markupsafe import escape

from ..content import FileMap, FileRecord
from ..utils import match_path, to_datetime


class Sitemap:
    """Generates sitemap.xml for search engine indexing.

    Per-file front-matter can override ``priority``, ``changefreq`` and
    ``lastmod``; ``sitemap: false`` or ``private: true`` leaves a page out.

    Attributes:
        hostname: Absolute base URL of the site.
        pattern: Files to list.
        omit_index: Drop a trailing ``index.html`` from URLs.
        omit_extension: Drop ``.html`` from URLs.
        changefreq: Default change frequency.
        priority: Default priority.
        lastmod: Default last modification date (the build date when None).
        output: Name of the generated file.
    """

    name = "sitemap"

    def __init__(
        self,
        hostname: str,
        pattern: str | list[str] = "**/*.html",
        omit_index: bool = False,
        omit_extension: bool = False,
        changefreq: str | None = None,
        priority: float | None = None,
        lastmod: date | None = None,
        output: str = "sitemap.xml",
    ):
        if not hostname:
            raise ValueError("Sitemap needs a hostname")
        self.hostname = hostname.rstrip("/")
        self.pattern = pattern
        self.omit_index = omit_index
        self.omit_extension = omit_extension
        self.changefreq = changefreq
        self.priority = priority
        self.lastmod = lastmod
        self.output = output

    def url_for(self, path: str) -> str:
        """Build the absolute URL listed for a file path."""
        location = path
        if self.omit_index and (location == "index.html" or location.endswith("/index.html")):
            location = location[: -len("index.html")]
        elif self.omit_extension and location.endswith(".html"):
            location = location[: -len(".html")]
        return f"{self.hostname}/{location}"

    def generate(self, files: FileMap) -> str:
        """Generate sitemap.xml content."""
        default_lastmod = self.lastmod or date.today()
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        for path in sorted(files):
            record = files[path]
            if not match_path(path, self.pattern) or self._skipped(record):
                continue
            entry = [f"<loc>{escape(self.url_for(path))}</loc>"]
            lastmod = to_datetime(record.get("lastmod")) or to_datetime(default_lastmod)
            if lastmod is not None:
                entry.append(f"<lastmod>{lastmod.strftime('%Y-%m-%d')}</lastmod>")
            changefreq = record.get("changefreq", self.changefreq)
            if changefreq:
                entry.append(f"<changefreq>{escape(str(changefreq))}</changefreq>")
            priority = record.get("priority", self.priority)
            if priority is not None:
                entry.append(f"<priority>{float(priority):.1f}</priority>")
            lines.append(f"  <url>{''.join(entry)}</url>")
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"

    @staticmethod
    def _skipped(record: FileRecord) -> bool:
        return record.get("sitemap") is False or bool(record.get("private"))

    def apply(self, files: FileMap, metadata: dict[str, Any]) -> FileMap:
        files[self.output] = FileRecord(contents=self.generate(files).encode("utf-8"))
        return files

"""Permalink plugin.

Moves ``about.html`` to ``about/index.html`` so pages are served from clean,
directory-style URLs, and records the resulting path and URL on each file.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Any

from ..content import FileMap, FileRecord
from ..utils import match_path, slugify, to_datetime

_PLACEHOLDER_RE = re.compile(r":([a-zA-Z_][a-zA-Z0-9_]*)")


class Permalinks:
    """Rewrites HTML files to directory-style paths.

    The pattern may use ``:dirname``, ``:basename`` and ``:date`` (YYYY/MM/DD),
    and any other ``:key`` is read from the file's metadata and slugified.
    Front-matter ``permalink: false`` keeps a file where it is; a string value
    is used as the target directory.

    Attributes:
        pattern: Target directory pattern.
        match: Files that receive permalinks.
    """

    name = "permalinks"

    def __init__(self, pattern: str = ":dirname/:basename", match: str | list[str] = "**/*.html"):
        self.pattern = pattern
        self.match = match

    def apply(self, files: FileMap, metadata: dict[str, Any]) -> FileMap:
        moves: dict[str, str] = {}
        for path, record in files.items():
            if not match_path(path, self.match):
                continue
            target = self._target(path, record)
            if target is None:
                is_index = PurePosixPath(path).name == "index.html"
                location = path[: -len("index.html")] if is_index else path
                record.metadata["path"] = location
                record.metadata["permalink"] = f"/{location}"
                continue
            moves[path] = target

        claimed = {p for p in files if p not in moves}
        for source, target in moves.items():
            if target in claimed:
                raise ValueError(f"Permalink conflict: {source} and another file both map to {target}")
            claimed.add(target)

        for source, target in moves.items():
            record = files.pop(source)
            directory = target[: -len("index.html")]
            record.metadata["path"] = directory
            record.metadata["permalink"] = f"/{directory}"
            files[target] = record
        return files

    def _target(self, path: str, record: FileRecord) -> str | None:
        override = record.get("permalink")
        if override is False:
            return None
        if isinstance(override, str) and override.strip("/"):
            return f"{override.strip('/')}/index.html"

        pure = PurePosixPath(path)
        if pure.name == "index.html":
            return None
        dirname = "" if str(pure.parent) == "." else str(pure.parent)

        def repl(match: re.Match) -> str:
            key = match.group(1)
            if key == "dirname":
                return dirname
            if key == "basename":
                return slugify(pure.stem)
            if key == "date":
                when = to_datetime(record.get("date"))
                return when.strftime("%Y/%m/%d") if when else ""
            value = record.get(key)
            return slugify(str(value)) if value is not None else ""

        filled = _PLACEHOLDER_RE.sub(repl, self.pattern)
        parts = [part for part in filled.split("/") if part]
        if not parts:
            return None
        return "/".join(parts) + "/index.html"

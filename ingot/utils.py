"""Small helpers shared by the plugins, the orchestrator and the CLI.

Key functions:
    slugify: Turn a filename stem or title into a URL segment.
    match_path: Test a file map key against glob patterns (with ! negation).
    to_datetime: Normalise front-matter date values.
    ensure_clean_dir: Recreate a directory empty.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Iterable
from datetime import date, datetime
from functools import lru_cache
from pathlib import Path

# "2024-01-15-hello-world" -> "hello-world"
_DATE_PREFIX_RE = re.compile(r"^\d+-\d+-\d+-(?=.)")


def _strip_date_prefix(name: str) -> str:
    return _DATE_PREFIX_RE.sub("", name, count=1)


def slugify(name: str) -> str:
    """Lowercase ``name`` and join its alphanumeric runs with hyphens.

    A leading ``YYYY-MM-DD-`` is dropped; an empty result becomes ``"index"``.
    """
    words = re.findall(r"[a-zA-Z0-9]+", _strip_date_prefix(name))
    return "-".join(words).lower() or "index"


@lru_cache(maxsize=128)
def _glob_regex(pattern: str) -> re.Pattern:
    """Translate a glob into a regex where ``*`` stops at ``/`` and ``**/`` spans folders."""
    out = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out) + r"\Z")


def match_path(path: str, patterns: str | Iterable[str]) -> bool:
    """Check a POSIX path against one or more glob patterns.

    A path matches when at least one positive pattern matches and no
    ``!``-prefixed pattern does.

    Args:
        path: Slash-separated path relative to the site root.
        patterns: A single pattern or an iterable of patterns.

    Returns:
        True if the path is selected by the patterns.

    Examples:
        >>> match_path("blog/post.md", "blog/*.md")
        True

        >>> match_path("404.html", ["**/*.html", "!**/404.html"])
        False
    """
    if isinstance(patterns, str):
        patterns = [patterns]
    included = False
    for pattern in patterns:
        if pattern.startswith("!"):
            if _glob_regex(pattern[1:]).match(path):
                return False
        elif not included and _glob_regex(pattern).match(path):
            included = True
    return included


def to_datetime(value) -> datetime | None:
    """Normalise a front-matter date value.

    YAML yields ``date`` or ``datetime`` objects for unquoted dates, and
    strings for quoted ones; all are converted to naive datetimes.

    Args:
        value: Raw metadata value.

    Returns:
        A naive datetime, or None when the value is not a recognisable date.
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).replace(tzinfo=None)
        except ValueError:
            return None
    return None


def ensure_clean_dir(path: Path) -> None:
    """Remove ``path`` if present and create it again, empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)

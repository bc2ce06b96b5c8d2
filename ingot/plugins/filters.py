"""Template filters shipped with the starter layouts."""

from __future__ import annotations

import json
import re
from typing import Any

from ..utils import slugify, to_datetime


def format_date(value: Any, fmt: str = "%B %d, %Y") -> str:
    """Format a front-matter date; unknown values are returned unchanged as text.

    Examples:
        >>> format_date("2024-06-01")
        'June 01, 2024'
    """
    when = to_datetime(value)
    if when is None:
        return "" if value is None else str(value)
    return when.strftime(fmt)


def iso_date(value: Any) -> str:
    when = to_datetime(value)
    return when.date().isoformat() if when else ""


def strip_html(value: str) -> str:
    return re.sub(r"<[^>]+>", "", value or "")


def excerpt(value: str | bytes, words: int = 40) -> str:
    """Return the first ``words`` words of an HTML fragment as plain text."""
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    tokens = strip_html(value).split()
    text = " ".join(tokens[:words])
    return f"{text}…" if len(tokens) > words else text


def trim_slashes(value: str) -> str:
    return (value or "").strip("/")


def to_json(value: Any) -> str:
    return json.dumps(value, default=str)


STARTER_FILTERS = {
    "date": format_date,
    "iso_date": iso_date,
    "strip_html": strip_html,
    "excerpt": excerpt,
    "trim_slashes": trim_slashes,
    "slugify": slugify,
    "to_json": to_json,
}

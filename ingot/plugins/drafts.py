"""Draft filtering plugin."""

from __future__ import annotations

import logging
from typing import Any

from ..content import FileMap

logger = logging.getLogger(__name__)


class Drafts:
    """Removes files whose front-matter sets ``draft: true``.

    Attributes:
        include: Keep drafts in the output instead of removing them.
    """

    name = "drafts"

    def __init__(self, include: bool = False):
        self.include = include

    def apply(self, files: FileMap, metadata: dict[str, Any]) -> FileMap:
        if self.include:
            return files
        for path in [p for p, record in files.items() if _is_draft(record.get("draft"))]:
            logger.debug("Skipping draft %s", path)
            del files[path]
        return files


def _is_draft(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)

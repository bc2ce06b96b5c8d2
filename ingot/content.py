"""Content loading for Ingot.

This module turns the source directory into the in-memory file map that flows
through the pipeline. Text files have their YAML front-matter parsed into metadata;
everything else is carried through as raw bytes.

Key classes:
- FileRecord: Contents and metadata of one file.
- ContentStore: Reads a source tree into a FileMap.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import SourceError

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.DOTALL)

# Files that never belong to a site build
_IGNORED_NAMES = {".DS_Store", "Thumbs.db"}


@dataclass(eq=False)
class FileRecord:
    """A file travelling through the pipeline.

    Item access reads from ``metadata``, so templates can write
    ``post.title`` for collection members.

    Attributes:
        contents: Raw file body (front-matter stripped).
        metadata: Front-matter values plus anything plugins attach.
    """

    contents: bytes
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.contents.decode("utf-8")

    @text.setter
    def text(self, value: str) -> None:
        self.contents = value.encode("utf-8")

    def __getitem__(self, key: str) -> Any:
        if key == "contents":
            return self.contents
        return self.metadata[key]

    def __contains__(self, key: object) -> bool:
        return key in self.metadata

    def get(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"FileRecord({len(self.contents)} bytes, keys={sorted(self.metadata)})"


FileMap = dict[str, FileRecord]


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML front-matter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (front-matter dict, remaining content).

    Raises:
        yaml.YAMLError: If the front-matter block is not valid YAML.
        ValueError: If the front-matter is valid YAML but not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    data = yaml.safe_load(match.group(1)) or {}
    if not isinstance(data, dict):
        raise ValueError("front-matter must be a mapping")
    return data, text[match.end() :]


def parse_file(raw: bytes) -> FileRecord:
    """Create a FileRecord from raw bytes, parsing front-matter for UTF-8 text."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return FileRecord(contents=raw)
    if not FRONTMATTER_RE.match(text):
        return FileRecord(contents=raw)
    metadata, body = extract_frontmatter(text)
    return FileRecord(contents=body.encode("utf-8"), metadata=metadata)


class ContentStore:
    """Reads the source directory into a FileMap.

    Attributes:
        source_dir: Directory containing the site's content.
    """

    def __init__(self, source_dir: Path):
        self.source_dir = source_dir

    def iter_files(self) -> Iterator[Path]:
        """Yield every regular file below the source directory in a stable order."""
        for path in sorted(self.source_dir.rglob("*")):
            if path.is_dir() or path.name in _IGNORED_NAMES:
                continue
            yield path

    def load(self) -> FileMap:
        """Load a fresh snapshot of the source tree.

        Returns:
            Mapping of source-relative POSIX path to FileRecord.

        Raises:
            SourceError: If a file cannot be read or has malformed front-matter.
        """
        if not self.source_dir.is_dir():
            raise SourceError(str(self.source_dir), "source directory does not exist")
        files: FileMap = {}
        for path in self.iter_files():
            rel = path.relative_to(self.source_dir).as_posix()
            try:
                raw = path.read_bytes()
            except OSError as exc:
                raise SourceError(rel, f"could not be read ({exc})", exc) from exc
            try:
                files[rel] = parse_file(raw)
            except (yaml.YAMLError, ValueError) as exc:
                raise SourceError(rel, f"invalid front-matter ({exc})", exc) from exc
        logger.debug("Loaded %d source files from %s", len(files), self.source_dir)
        return files

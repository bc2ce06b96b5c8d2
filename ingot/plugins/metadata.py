"""Global metadata plugin.

Loads site-wide data files (YAML or JSON) into the global metadata so that
every later plugin and every template can read them.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from ..content import FileMap


def load_data_file(path: Path) -> Any:
    """Load a YAML or JSON data file.

    Args:
        path: File to read; the format is picked from its extension.

    Returns:
        The parsed document.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the extension is not supported.
    """
    suffix = path.suffix.lower()
    with open(path, encoding="utf-8") as f:
        if suffix == ".json":
            return json.load(f)
        if suffix in (".yaml", ".yml"):
            return yaml.safe_load(f)
    raise ValueError(f"Unsupported data file format: {path.name}")


class Metadata:
    """Adds the contents of data files to the global metadata.

    Attributes:
        sources: Mapping of metadata key to data file path.
    """

    name = "metadata"

    def __init__(self, sources: dict[str, Path | str], root: Path | None = None):
        base = root or Path.cwd()
        self.sources = {key: base / Path(path) for key, path in sources.items()}

    def apply(self, files: FileMap, metadata: dict[str, Any]) -> FileMap:
        for key, path in self.sources.items():
            metadata[key] = load_data_file(path)
        return files

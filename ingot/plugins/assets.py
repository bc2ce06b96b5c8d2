"""Static asset plugin.

Copies everything below an asset directory into the file map under a destination
prefix. When optimisation is on, JavaScript is minified and raster images are
re-encoded; each asset type is handled by its own processor.

Key classes:
- BaseAssetProcessor: Interface for per-type processing of asset bytes.
- JSProcessor: Minifies JavaScript with rjsmin.
- ImageProcessor: Re-encodes PNG/JPEG/WebP with Pillow.
- AssetProcessorRegistry: Picks the processor for a file.
- StaticFiles: The plugin.
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Any

from PIL import Image
from rjsmin import jsmin

from ..content import FileMap, FileRecord

logger = logging.getLogger(__name__)


class BaseAssetProcessor(ABC):
    """Base class for asset processors."""

    @property
    @abstractmethod
    def priority(self) -> int:
        """Return processor priority (higher = checked first)."""
        ...

    @abstractmethod
    def can_process(self, path: Path) -> bool:
        """Check if this processor can handle the given asset."""
        ...

    @abstractmethod
    def process(self, path: Path, data: bytes) -> bytes:
        """Return the optimised bytes for an asset.

        Args:
            path: Source path of the asset (used for its type).
            data: Original bytes.

        Returns:
            Processed bytes.
        """
        ...


class JSProcessor(BaseAssetProcessor):
    """Minifies JavaScript files, skipping ones that are already minified."""

    @property
    def priority(self) -> int:
        return 80

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() == ".js" and not path.name.endswith(".min.js")

    def process(self, path: Path, data: bytes) -> bytes:
        return jsmin(data.decode("utf-8")).encode("utf-8")


class ImageProcessor(BaseAssetProcessor):
    """Optimizes image files using Pillow.

    Supports PNG, JPG, JPEG, and WebP formats. The original bytes are kept
    when re-encoding does not make the file smaller.
    """

    SUPPORTED_EXTENSIONS = {".png": "PNG", ".jpg": "JPEG", ".jpeg": "JPEG", ".webp": "WEBP"}

    @property
    def priority(self) -> int:
        return 100

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() in self.SUPPORTED_EXTENSIONS

    def process(self, path: Path, data: bytes) -> bytes:
        fmt = self.SUPPORTED_EXTENSIONS[path.suffix.lower()]
        with Image.open(io.BytesIO(data)) as img:
            buffer = io.BytesIO()
            img.save(buffer, format=fmt, optimize=True)
        optimized = buffer.getvalue()
        return optimized if len(optimized) < len(data) else data


class AssetProcessorRegistry:
    """Registry for managing asset processors.

    Processors are checked in priority order; files no processor claims are
    copied unchanged.
    """

    def __init__(self):
        self._processors: list[BaseAssetProcessor] = []

    def register(self, processor: BaseAssetProcessor) -> None:
        self._processors.append(processor)
        self._processors.sort(key=lambda p: p.priority, reverse=True)

    def get_processor(self, path: Path) -> BaseAssetProcessor | None:
        for processor in self._processors:
            if processor.can_process(path):
                return processor
        return None

    def process(self, path: Path, data: bytes) -> bytes:
        processor = self.get_processor(path)
        if processor is None:
            return data
        try:
            return processor.process(path, data)
        except Exception as exc:
            logger.warning("Could not optimise %s (%s); copying as is", path.name, exc)
            return data


def create_default_registry() -> AssetProcessorRegistry:
    """Create a registry with the JavaScript and image processors."""
    registry = AssetProcessorRegistry()
    registry.register(ImageProcessor())
    registry.register(JSProcessor())
    return registry


class StaticFiles:
    """Adds static assets to the file map.

    Attributes:
        source: Directory holding the assets.
        destination: Prefix the assets are published under.
        optimize: Run assets through the processor registry.
    """

    name = "static-files"

    def __init__(
        self,
        source: Path,
        destination: str = "assets",
        optimize: bool = False,
        registry: AssetProcessorRegistry | None = None,
    ):
        self.source = source
        self.destination = destination.strip("/")
        self.optimize = optimize
        self.registry = registry or create_default_registry()

    def apply(self, files: FileMap, metadata: dict[str, Any]) -> FileMap:
        if not self.source.is_dir():
            logger.debug("No asset directory at %s", self.source)
            return files
        for item in sorted(self.source.rglob("*")):
            if item.is_dir():
                continue
            rel = item.relative_to(self.source).as_posix()
            key = str(PurePosixPath(self.destination) / rel) if self.destination else rel
            data = item.read_bytes()
            if self.optimize:
                data = self.registry.process(item, data)
            files[key] = FileRecord(contents=data)
        return files

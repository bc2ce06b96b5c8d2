"""Pipeline composition for Ingot.

A Pipeline is an immutable, ordered sequence of plugins. Running it hands the
file map from one plugin to the next; the first failure stops the pass and is
reported as a PluginError naming the plugin.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from typing import Any

from .content import FileMap
from .errors import ConfigurationError, PluginError
from .protocols import Plugin

logger = logging.getLogger(__name__)


class Pipeline:
    """Ordered plugin chain.

    Attributes:
        plugins: The plugins in application order.
    """

    def __init__(self, plugins: Iterable[Plugin]):
        self.plugins: tuple[Plugin, ...] = tuple(plugins)

    @property
    def names(self) -> list[str]:
        return [plugin.name for plugin in self.plugins]

    def run(self, files: FileMap, metadata: dict[str, Any]) -> FileMap:
        """Apply every plugin in order.

        Args:
            files: Initial file map (mutated in place by most plugins).
            metadata: Global metadata visible to every plugin.

        Returns:
            The file map produced by the last plugin.

        Raises:
            PluginError: If a plugin raises or returns something other than a
                file map; later plugins are not invoked.
        """
        for plugin in self.plugins:
            started = time.perf_counter()
            try:
                result = plugin.apply(files, metadata)
            except Exception as exc:
                raise PluginError(plugin.name, exc) from exc
            if result is not None and not isinstance(result, Mapping):
                raise PluginError(
                    plugin.name,
                    TypeError(
                        f"apply() returned {type(result).__name__}, expected a file map"
                    ),
                )
            if result is not None:
                files = result
            logger.debug(
                "%s: %d files in %.1fms",
                plugin.name,
                len(files),
                (time.perf_counter() - started) * 1000,
            )
        return files

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"Pipeline({', '.join(self.names)})"


def compose(plugins: Iterable[Plugin]) -> Pipeline:
    """Create a Pipeline, validating its configuration.

    Args:
        plugins: Plugins in the order they must be applied.

    Returns:
        The composed pipeline.

    Raises:
        ConfigurationError: If the list is empty or contains a non-plugin.
    """
    plugins = list(plugins)
    if not plugins:
        raise ConfigurationError("A pipeline needs at least one plugin")
    for index, plugin in enumerate(plugins):
        if not isinstance(plugin, Plugin) or not isinstance(
            getattr(plugin, "name", None), str
        ):
            raise ConfigurationError(
                f"Pipeline entry {index} ({plugin!r}) is not a plugin"
            )
    return Pipeline(plugins)

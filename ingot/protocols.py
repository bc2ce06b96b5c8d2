"""Protocol definitions for Ingot.

The pipeline depends only on the shape of a plugin, never on a concrete class,
so any object with a ``name`` and an ``apply`` method can be composed.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import FileMap


@runtime_checkable
class Plugin(Protocol):
    """Protocol for a pipeline step.

    Implementations receive the file map of the current pass together with
    the global metadata and return the (possibly new) file map. Returning
    None means the map was mutated in place.
    """

    name: str

    @abstractmethod
    def apply(self, files: FileMap, metadata: dict[str, Any]) -> FileMap | None:
        """Transform the file map.

        Args:
            files: Mapping of output-relative path to FileRecord.
            metadata: Site-wide metadata shared by every plugin and template.

        Returns:
            The file map to hand to the next plugin, or None for in-place edits.
        """
        ...

"""Built-in pipeline plugins.

Each plugin has a ``name`` and an ``apply(files, metadata)`` method; see
``ingot.protocols.Plugin``. They are listed here in the order the starter
site applies them.
"""

from .assets import StaticFiles
from .collections import Collection, CollectionRule, Collections
from .drafts import Drafts
from .highlight import Highlight
from .layouts import Layouts
from .markdown import Markdown
from .metadata import Metadata
from .minify import HtmlMinifier
from .permalinks import Permalinks
from .sitemap import Sitemap

__all__ = [
    "Drafts",
    "Metadata",
    "Collection",
    "CollectionRule",
    "Collections",
    "Markdown",
    "Permalinks",
    "Layouts",
    "Highlight",
    "StaticFiles",
    "HtmlMinifier",
    "Sitemap",
]

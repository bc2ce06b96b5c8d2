"""Ingot static site builder.

This package builds static sites by running source files through an ordered pipeline
of small plugins (drafts, metadata, collections, markdown, permalinks, layouts,
highlighting, assets, and production-only minification and sitemap generation).

The main entry point is the CLI module, which provides commands for scaffolding the
starter site, building it, and running the development server with live reload.

Architecture:
- The pipeline is declared once in ``ingot.site``; every step is a plugin.
- Plugins share one contract (``apply(files, metadata)``) defined in ``ingot.protocols``.
- The orchestrator in ``ingot.build`` owns disk I/O; plugins only touch the file map.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"

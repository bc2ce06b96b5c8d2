"""The starter site's build pipeline.

PLUGIN ORDER MATTERS. Each plugin sees the file map left by the one before it:

1. Drafts       - drop drafts first, before anything indexes them
2. Metadata     - global data other plugins and layouts read
3. Collections  - group posts before layouts loop over them
4. Markdown     - .md to .html, before permalinks and layouts
5. Permalinks   - final URLs, so layouts can link to them
6. Layouts      - wrap contents in templates
7. Highlight    - needs the final HTML
8. StaticFiles  - copy assets (order independent)

Production builds also minify HTML and write a sitemap.
"""

from __future__ import annotations

import platform
from pathlib import Path
from typing import Any

from . import __version__
from .config import BuildConfig
from .errors import ConfigurationError
from .pipeline import Pipeline, compose
from .plugins import (
    CollectionRule,
    Collections,
    Drafts,
    Highlight,
    HtmlMinifier,
    Layouts,
    Markdown,
    Metadata,
    Permalinks,
    Sitemap,
    StaticFiles,
)
from .plugins.filters import STARTER_FILTERS
from .plugins.metadata import load_data_file

BLOG_COLLECTION = CollectionRule(pattern="blog/*.md", sort_by="date", reverse=True, limit=20)


def initial_metadata(config: BuildConfig) -> dict[str, Any]:
    """Global metadata every pass starts from."""
    return {
        "ingot_version": __version__,
        "python_version": platform.python_version(),
        "mode": config.mode.value,
    }


def site_url(config: BuildConfig) -> str:
    """Read ``siteURL`` from the site data file; required for the sitemap."""
    path = config.data_files.get("site")
    if path is None:
        raise ConfigurationError("Production builds need a 'site' data file")
    try:
        data = load_data_file(path) or {}
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Could not read site data from {path}: {exc}", exc) from exc
    url = data.get("siteURL") if isinstance(data, dict) else None
    if not url:
        raise ConfigurationError(f"'siteURL' is missing from {path}")
    return str(url)


def create_pipeline(config: BuildConfig) -> Pipeline:
    """Declare the pipeline for the given configuration.

    Args:
        config: Project configuration; its mode decides the production-only steps.

    Returns:
        The composed pipeline.

    Raises:
        ConfigurationError: If production settings cannot be resolved.
    """
    highlighter = Highlight(line_numbers=True, decode=True)
    plugins: list[Any] = [
        Drafts(include=config.include_drafts),
        Metadata(config.data_files, root=config.project_root),
        Collections({"blog": BLOG_COLLECTION}),
        Markdown(),
        Permalinks(),
        Layouts(
            config.layouts,
            pattern="**/*.html",
            filters=STARTER_FILTERS,
            globals={"pygments_css": highlighter.css},
        ),
        highlighter,
        StaticFiles(config.assets, destination="assets", optimize=config.is_production),
    ]

    if config.is_production:
        plugins.extend(
            [
                HtmlMinifier(),
                Sitemap(
                    hostname=site_url(config),
                    pattern=["**/*.html", "!**/404.html"],
                    omit_index=True,
                    omit_extension=True,
                    changefreq="weekly",
                    priority=0.5,
                ),
            ]
        )

    return compose(plugins)


def starter_dir() -> Path:
    """Directory holding the starter site copied by ``ingot new``."""
    return Path(__file__).parent / "starter"

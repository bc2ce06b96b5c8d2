"""Command-line interface for Ingot.

This module defines the CLI commands using Click framework.

Commands:
- new: Scaffold the starter site.
- start: Development build, file watching and live-reload server.
- build: Single production build.
- serve: Serve a previously built site.
- post: Create a new draft blog post interactively.
"""

from __future__ import annotations

import logging
import shutil
from datetime import date
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .config import BuildConfig, BuildMode, load_config
from .errors import BuildError, ConfigurationError
from .utils import slugify


@click.group()
@click.version_option(version=__version__, prog_name="ingot")
@click.option("-v", "--verbose", is_flag=True, help="Log every pipeline step")
def cli(verbose: bool):
    """Ingot static site builder."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold the starter site."""
    from .site import starter_dir

    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(starter_dir(), target)
    click.echo(f"New Ingot site created at {target}")


@cli.command()
@click.option("--port", type=int, required=False, help="Port for the dev server (overrides ingot.yaml)")
@click.option("--ws-port", type=int, required=False, help="Port for the live reload websocket server")
def start(port: int | None, ws_port: int | None):
    """Build in development mode, watch for changes and serve with live reload."""
    from .build import Builder
    from .develop import DevelopmentSession
    from .server import DevServer

    config = _load(BuildMode.DEVELOPMENT, port=port, ws_port=ws_port)
    builder = Builder(config, _pipeline(config), metadata=_metadata(config))
    server = DevServer(config.host, config.port, config.ws_port)
    DevelopmentSession(builder, server).run()


@cli.command()
def build():
    """Build the site for production."""
    from .build import Builder

    config = _load(BuildMode.PRODUCTION)
    builder = Builder(config, _pipeline(config), metadata=_metadata(config))
    report = builder.run_once()
    if not report.ok:
        _echo_failure(report.error)
        raise SystemExit(1)
    click.echo(report.summary())


@cli.command()
@click.option("--port", type=int, required=False, help="Port for the server (overrides ingot.yaml)")
@click.option("--ws-port", type=int, required=False, help="Port for the live reload websocket server")
def serve(port: int | None, ws_port: int | None):
    """Serve a previously built site."""
    from .server import DevServer

    config = _load(None, port=port, ws_port=ws_port)
    if not config.destination.is_dir():
        raise click.ClickException(
            f"Nothing to serve at {config.destination}; run 'ingot build' first."
        )
    server = DevServer(config.host, config.port, config.ws_port)
    server.start(config.destination)
    server.serve_forever()


@cli.command()
def post():
    """Create a new draft blog post interactively."""
    config = _load(None)
    blog_dir = config.source / "blog"

    title = questionary.text(
        "Post title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    add_date = questionary.confirm(
        "Prefix the filename with today's date? (YYYY-MM-DD-)",
        default=False,
        style=_questionary_style(),
    ).ask()
    if add_date is None:
        raise click.Abort()

    today = date.today()
    slug = slugify(title)
    filename = f"{today.isoformat()}-{slug}.md" if add_date else f"{slug}.md"
    target = blog_dir / filename
    if target.exists():
        raise click.ClickException(
            f"File already exists: {target.relative_to(config.project_root)}"
        )

    blog_dir.mkdir(parents=True, exist_ok=True)
    frontmatter = yaml.safe_dump(
        {"layout": "blog-post.html", "title": title, "date": today, "draft": True},
        sort_keys=False,
        allow_unicode=True,
    )
    target.write_text(f"---\n{frontmatter}---\n\n# {title}\n\n", encoding="utf-8")
    click.echo(f"Created {target.relative_to(config.project_root)}")


def main():
    """Entry point for the CLI application."""
    cli()


def _load(mode: BuildMode | None, **overrides) -> BuildConfig:
    try:
        return load_config(Path.cwd(), mode=mode, **overrides)
    except ConfigurationError as exc:
        _echo_failure(exc)
        raise SystemExit(1) from None


def _pipeline(config: BuildConfig):
    from .site import create_pipeline

    try:
        return create_pipeline(config)
    except ConfigurationError as exc:
        _echo_failure(exc)
        raise SystemExit(1) from None


def _metadata(config: BuildConfig) -> dict:
    from .site import initial_metadata

    return initial_metadata(config)


def _echo_failure(error: BuildError) -> None:
    """Display a build failure on stderr."""
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    click.echo(click.style(f"  Stage: {error.stage}", fg="yellow"), err=True)
    plugin = getattr(error, "plugin", None)
    if plugin:
        click.echo(click.style(f"  Plugin: {plugin}", fg="yellow"), err=True)
    click.echo(f"  Error: {error.message}", err=True)


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def _scaffold(source: Path, root: Path) -> None:
    """Copy the starter site into a new project directory.

    Args:
        source: Directory holding the starter files.
        root: Root directory for the new project.
    """
    for src_path in source.rglob("*"):
        if src_path.is_dir() or "__pycache__" in src_path.parts:
            continue
        rel_path = src_path.relative_to(source)
        dest_path = root / rel_path
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)

"""Project configuration for Ingot.

Configuration is read once at process start: defaults are merged with an optional
``ingot.yaml`` at the project root, the build mode is resolved from ``INGOT_ENV``
(unless a CLI command fixes it), and the result is frozen into a BuildConfig that
is passed explicitly to everything that needs it.
"""

from __future__ import annotations

import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError

CONFIG_FILENAME = "ingot.yaml"
MODE_ENV_VAR = "INGOT_ENV"

DEFAULT_CONFIG: dict[str, Any] = {
    "source": "src",
    "destination": "build",
    "layouts": "lib/layouts",
    "assets": "lib/assets",
    "data": {
        "site": "lib/data/site.yaml",
        "nav": "lib/data/navigation.yaml",
    },
    "host": "localhost",
    "port": 3000,
    "ws_port": None,
    "watch": ["src", "lib/layouts", "lib/assets", "lib/data"],
    "debounce": 0.1,
    "drafts": None,
}


class BuildMode(str, enum.Enum):
    """Whether the site is built for local authoring or for publishing."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> BuildMode:
        """Resolve the mode from ``INGOT_ENV``; anything but "development" is production."""
        environ = os.environ if environ is None else environ
        value = environ.get(MODE_ENV_VAR, "").strip().lower()
        if value == cls.DEVELOPMENT.value:
            return cls.DEVELOPMENT
        return cls.PRODUCTION


@dataclass(frozen=True)
class BuildConfig:
    """Resolved, immutable configuration for one process.

    Attributes:
        project_root: Root directory of the project.
        mode: Development or production.
        source: Directory with content files.
        destination: Directory the built site is published to.
        layouts: Directory with layout templates.
        assets: Directory with static assets.
        data_files: Mapping of metadata key to data file path.
        host: Host name the dev server binds to.
        port: HTTP port of the dev server.
        ws_port: Websocket port used for live reload.
        watch_paths: Directories observed in development mode.
        debounce: Quiet period (seconds) before a change triggers a rebuild.
        include_drafts: Whether draft files are published.
    """

    project_root: Path
    mode: BuildMode
    source: Path
    destination: Path
    layouts: Path
    assets: Path
    data_files: dict[str, Path]
    host: str
    port: int
    ws_port: int
    watch_paths: tuple[Path, ...]
    debounce: float
    include_drafts: bool

    @property
    def is_production(self) -> bool:
        return self.mode is BuildMode.PRODUCTION

    @property
    def staging_dir(self) -> Path:
        return self.destination.with_name(self.destination.name + ".staging")


def read_config_file(project_root: Path) -> dict[str, Any]:
    """Load ``ingot.yaml`` merged over DEFAULT_CONFIG.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigurationError: If the file is not valid YAML or not a mapping.
    """
    config = dict(DEFAULT_CONFIG)
    config_path = project_root / CONFIG_FILENAME
    if not config_path.exists():
        return config
    try:
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"{CONFIG_FILENAME} is not valid YAML: {exc}", exc) from exc
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"{CONFIG_FILENAME} must contain a mapping")
    config.update(loaded)
    return config


def load_config(
    project_root: Path,
    mode: BuildMode | None = None,
    environ: Mapping[str, str] | None = None,
    port: int | None = None,
    ws_port: int | None = None,
) -> BuildConfig:
    """Build the BuildConfig for a project.

    Args:
        project_root: Root directory of the project.
        mode: Explicit build mode; resolved from the environment when None.
        environ: Environment mapping used to resolve the mode (defaults to os.environ).
        port: Optional override for the HTTP port.
        ws_port: Optional override for the websocket port.

    Returns:
        Frozen configuration.

    Raises:
        ConfigurationError: If a value is missing or has the wrong type.
    """
    project_root = project_root.resolve()
    raw = read_config_file(project_root)
    resolved_mode = mode or BuildMode.from_environ(environ)

    def path_of(key: str) -> Path:
        value = raw.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"'{key}' must be a non-empty path string")
        return project_root / value

    source = path_of("source")
    if not source.is_dir():
        raise ConfigurationError(f"Expected source directory at {source}")

    data = raw.get("data") or {}
    if not isinstance(data, dict):
        raise ConfigurationError("'data' must map metadata keys to file paths")

    watch = raw.get("watch") or []
    if isinstance(watch, str):
        watch = [watch]
    if not isinstance(watch, (list, tuple)) or not all(
        isinstance(p, str) and p.strip() for p in watch
    ):
        raise ConfigurationError("'watch' must be a path or a list of paths")

    http_port = _as_int("port", port if port is not None else raw.get("port"))
    if ws_port is not None:
        resolved_ws = _as_int("ws_port", ws_port)
    elif port is None and raw.get("ws_port") is not None:
        resolved_ws = _as_int("ws_port", raw.get("ws_port"))
    else:
        resolved_ws = http_port + 1

    try:
        debounce = float(raw.get("debounce", DEFAULT_CONFIG["debounce"]))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError("'debounce' must be a number of seconds", exc) from exc

    drafts = raw.get("drafts")
    include_drafts = (
        bool(drafts) if drafts is not None else resolved_mode is BuildMode.DEVELOPMENT
    )

    return BuildConfig(
        project_root=project_root,
        mode=resolved_mode,
        source=source,
        destination=path_of("destination"),
        layouts=path_of("layouts"),
        assets=path_of("assets"),
        data_files={str(k): project_root / str(v) for k, v in data.items()},
        host=str(raw.get("host") or "localhost"),
        port=http_port,
        ws_port=resolved_ws,
        watch_paths=tuple(project_root / p for p in watch),
        debounce=debounce,
        include_drafts=include_drafts,
    )


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}", exc) from exc

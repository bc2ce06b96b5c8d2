"""Site building functionality for Ingot.

This module runs one pass of the pipeline and publishes its output. A pass loads
a fresh snapshot of the source tree, runs the composed plugins over it, writes the
resulting file map into a staging directory, and then swaps the staging directory
into place. A failed pass never touches the published destination.

Key classes:
- Builder: Runs passes (one at a time) and owns the destination directory.
- BuildReport: Outcome of one pass.
- BuildState: Where the builder is in its pass cycle. A pass goes from IDLE to
  RUNNING, then SUCCESS or FAILED, then back to IDLE. In development a success
  goes through SERVER_READY (server start or reload) before IDLE.
"""

from __future__ import annotations

import enum
import logging
import os
import shutil
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from .config import BuildConfig, BuildMode
from .content import ContentStore, FileMap
from .errors import BuildError, OutputError
from .pipeline import Pipeline
from .utils import ensure_clean_dir
from .watch import Watcher

logger = logging.getLogger(__name__)


class BuildState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SERVER_READY = "server-ready"


@dataclass
class BuildReport:
    """Result of a single build pass.

    Attributes:
        mode: Build mode the pass ran in.
        output_dir: Directory the site was published to.
        files: Output-relative paths that were written, sorted.
        duration_ms: Wall-clock duration of the pass.
        error: The failure that ended the pass, if any.
    """

    mode: BuildMode
    output_dir: Path
    files: list[str] = field(default_factory=list)
    duration_ms: float = 0.0
    error: BuildError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def summary(self) -> str:
        if self.ok:
            return f"Build success in {self.duration_ms:.1f}ms ({len(self.files)} files)"
        return f"Build failed in {self.duration_ms:.1f}ms: {self.error.describe()}"


class Builder:
    """Runs build passes and publishes their output.

    Only one pass runs at a time; a caller arriving while a pass is in flight
    waits for it to finish before starting its own.

    Attributes:
        config: Project configuration.
        pipeline: Composed plugin pipeline.
        store: Source of the per-pass file map.
        metadata: Seed for the global metadata of every pass.
    """

    def __init__(
        self,
        config: BuildConfig,
        pipeline: Pipeline,
        store: ContentStore | None = None,
        metadata: Mapping[str, Any] | None = None,
    ):
        self.config = config
        self.pipeline = pipeline
        self.store = store or ContentStore(config.source)
        self.metadata = dict(metadata or {})
        self._lock = threading.Lock()
        self._state = BuildState.IDLE
        self.last_report: BuildReport | None = None

    @property
    def state(self) -> BuildState:
        return self._state

    def run_once(
        self, on_success: Callable[[BuildReport], None] | None = None
    ) -> BuildReport:
        """Run one complete pass and publish it on success.

        Args:
            on_success: Called with the report after a successful pass, while
                the builder is SERVER_READY. The development session uses it
                to start or reload the dev server.

        Returns:
            BuildReport describing the pass; pass-level failures are reported
            in ``error`` rather than raised.
        """
        with self._lock:
            self._state = BuildState.RUNNING
            started = time.perf_counter()
            report = BuildReport(mode=self.config.mode, output_dir=self.config.destination)
            try:
                try:
                    files = self.pipeline.run(self.store.load(), dict(self.metadata))
                    report.files = self._publish(files)
                    self._state = BuildState.SUCCESS
                except BuildError as exc:
                    logger.debug("Pass failed", exc_info=exc)
                    report.error = exc
                    self._state = BuildState.FAILED
                report.duration_ms = (time.perf_counter() - started) * 1000
                self.last_report = report
                if report.ok and on_success is not None:
                    self._state = BuildState.SERVER_READY
                    on_success(report)
            finally:
                self._state = BuildState.IDLE
            return report

    def watch(self, on_change: Callable[[], None]) -> Watcher | None:
        """Start watching the configured paths in development mode.

        Args:
            on_change: Called once per debounced burst of changes.

        Returns:
            The running Watcher, or None in production mode (nothing is observed).
        """
        if self.config.is_production:
            logger.debug("Production mode; not watching for changes")
            return None
        destination = self.config.destination
        watcher = Watcher(
            self.config.watch_paths,
            on_change,
            debounce=self.config.debounce,
            ignore=(destination, self.config.staging_dir, _previous_dir(destination)),
        )
        watcher.start()
        return watcher

    def _publish(self, files: FileMap) -> list[str]:
        """Write the file map to staging and swap it into the destination.

        Args:
            files: Final file map of the pass.

        Returns:
            Sorted list of written paths.

        Raises:
            OutputError: If writing or swapping fails; the destination is unchanged.
        """
        staging = self.config.staging_dir
        destination = self.config.destination
        written: list[str] = []
        try:
            ensure_clean_dir(staging)
            for key in sorted(files):
                target = _target_path(staging, key)
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(_contents(key, files[key]))
                written.append(key)
            _activate(staging, destination)
        except (OSError, TypeError, AttributeError) as exc:
            raise OutputError(f"Could not write {destination}: {exc}", exc) from exc
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)
        return written


def _contents(key: str, record: Any) -> bytes:
    contents = getattr(record, "contents", None)
    if not isinstance(contents, (bytes, bytearray)):
        raise OutputError(
            f"{key!r} has {type(contents).__name__} contents, expected bytes"
        )
    return contents


def _target_path(root: Path, key: str) -> Path:
    if not isinstance(key, str):
        raise OutputError(f"File map keys must be paths, got {key!r}")
    pure = PurePosixPath(key)
    if pure.is_absolute() or ".." in pure.parts or not pure.parts:
        raise OutputError(f"Refusing to write outside the destination: {key!r}")
    return root.joinpath(*pure.parts)


def _previous_dir(destination: Path) -> Path:
    return destination.with_name(destination.name + ".previous")


def _activate(staging: Path, destination: Path) -> None:
    """Replace ``destination`` with ``staging``, keeping the old tree until the swap succeeds."""
    previous = _previous_dir(destination)
    if previous.exists():
        shutil.rmtree(previous)
    had_previous = destination.exists()
    if had_previous:
        os.replace(destination, previous)
    try:
        os.replace(staging, destination)
    except OSError:
        if had_previous:
            os.replace(previous, destination)
        raise
    if had_previous:
        shutil.rmtree(previous, ignore_errors=True)

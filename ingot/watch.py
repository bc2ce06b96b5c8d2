"""File watching with debounced, coalesced rebuild triggers.

watchdog delivers raw filesystem events on its own thread; they only raise a
"pending" flag. A single worker thread waits for the flag, lets the burst of
events go quiet for ``debounce`` seconds, and then calls the change callback
once. Events that arrive while the callback runs raise the flag again, so a
busy editor causes at most one follow-up pass rather than one per event.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .errors import WatchError

logger = logging.getLogger(__name__)

# Directory names whose changes never trigger a rebuild
_IGNORE_PARTS = {".git", "node_modules", "__pycache__"}


class _ChangeHandler(FileSystemEventHandler):
    """Forwards relevant filesystem events to the watcher."""

    def __init__(self, watcher: Watcher):
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = Path(str(event.src_path))
        if self.watcher.is_ignored(path):
            return
        self.watcher.notify(path)


class Watcher:
    """Watches directories and calls ``on_change`` once per burst of changes.

    Attributes:
        paths: Directories to observe recursively.
        debounce: Quiet period in seconds before a burst is acted upon.
        ignore: Directories whose events are dropped (e.g. the destination).
        runs: Number of times ``on_change`` has been called.
    """

    def __init__(
        self,
        paths: Iterable[Path],
        on_change: Callable[[], None],
        debounce: float = 0.1,
        ignore: Iterable[Path] = (),
    ):
        self.paths = [Path(p) for p in paths]
        self.debounce = debounce
        self.ignore = [Path(p).resolve() for p in ignore]
        self.runs = 0
        self._on_change = on_change
        self._cond = threading.Condition()
        self._pending = False
        self._last_event = 0.0
        self._stopping = False
        self._observer: Observer | None = None
        self._worker: threading.Thread | None = None

    def is_ignored(self, path: Path) -> bool:
        if any(part in _IGNORE_PARTS for part in path.parts):
            return True
        resolved = path.resolve()
        for ignored in self.ignore:
            try:
                resolved.relative_to(ignored)
                return True
            except ValueError:
                continue
        return False

    def notify(self, path: Path | None = None) -> None:
        """Record a change; the callback runs after the burst goes quiet."""
        if path is not None:
            logger.debug("Change detected: %s", path)
        with self._cond:
            self._pending = True
            self._last_event = time.monotonic()
            self._cond.notify_all()

    def start(self) -> None:
        """Start the worker thread and begin observing the configured paths."""
        if self._worker is not None:
            return
        self._stopping = False
        self._worker = threading.Thread(target=self._loop, name="ingot-watch", daemon=True)
        self._worker.start()

        observer = Observer()
        handler = _ChangeHandler(self)
        for path in self.paths:
            error = self._schedule(observer, handler, path)
            if error is not None:
                logger.warning("%s", error.describe())
        try:
            observer.start()
        except OSError as exc:
            logger.warning("%s", WatchError(f"File watching unavailable: {exc}", exc).describe())
            return
        self._observer = observer

    @staticmethod
    def _schedule(observer: Observer, handler: _ChangeHandler, path: Path) -> WatchError | None:
        if not path.exists():
            return WatchError(f"Not watching {path}: it does not exist")
        try:
            observer.schedule(handler, str(path), recursive=True)
        except OSError as exc:
            return WatchError(f"Not watching {path}: {exc}", exc)
        logger.info("Watching %s for changes", path)
        return None

    def stop(self) -> None:
        """Stop observing and wait for the worker to exit."""
        with self._cond:
            self._stopping = True
            self._cond.notify_all()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None
        if self._worker is not None:
            self._worker.join(timeout=5)
            self._worker = None

    def _wait_for_burst(self) -> bool:
        """Block until a burst of changes has gone quiet; False when stopping."""
        with self._cond:
            while not self._pending and not self._stopping:
                self._cond.wait()
            while not self._stopping:
                remaining = self._last_event + self.debounce - time.monotonic()
                if remaining <= 0:
                    break
                self._cond.wait(remaining)
            if self._stopping:
                return False
            self._pending = False
            return True

    def _loop(self) -> None:
        while self._wait_for_burst():
            self.runs += 1
            try:
                self._on_change()
            except Exception:
                logger.exception("Rebuild after change failed")

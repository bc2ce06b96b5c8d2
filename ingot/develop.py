"""Development loop: build, serve, watch, rebuild, reload."""

from __future__ import annotations

import logging
import time

from .build import Builder, BuildReport
from .server import DevServer
from .watch import Watcher

logger = logging.getLogger(__name__)


class DevelopmentSession:
    """Owns the builder, the watcher and the dev server for ``ingot start``.

    A successful pass starts the server the first time and reloads browsers
    afterwards; a failed pass is reported and leaves the server alone so the
    last good site stays visible while the author fixes the problem.

    Attributes:
        builder: Runs the passes.
        server: Serves the destination directory.
        watcher: Active watcher once ``run`` has started it.
    """

    def __init__(self, builder: Builder, server: DevServer):
        self.builder = builder
        self.server = server
        self.watcher: Watcher | None = None

    def rebuild(self) -> BuildReport:
        report = self.builder.run_once(on_success=self._serve)
        if not report.ok:
            logger.error(report.summary())
        return report

    def _serve(self, report: BuildReport) -> None:
        logger.info(report.summary())
        self.server.publish(report.output_dir)

    def run(self) -> None:  # pragma: no cover - integration path
        self.rebuild()
        self.watcher = self.builder.watch(self.rebuild)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Stopping")
        finally:
            if self.watcher is not None:
                self.watcher.stop()
            self.server.stop()

"""Development server for Ingot.

An HTTP server for the destination directory plus a websocket channel used
for live reload. HTML responses carry a small client script; after every
successful pass the server sends ``{"type": "reload"}`` and browsers reload
the whole page.

Key classes:
- DevServer: Started once per session, reloaded after every later pass.
- _ReloadHandler: Request handler adding the client script and 404 handling.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets

logger = logging.getLogger(__name__)

RELOAD_MESSAGE = {"type": "reload"}

_CLIENT_SCRIPT = """
<script>
(() => {{
  const connect = () => {{
    const socket = new WebSocket(`ws://${{location.hostname}}:{ws_port}`);
    socket.addEventListener('message', (event) => {{
      const message = JSON.parse(event.data || '{{}}');
      if (message.type === 'reload') location.reload();
    }});
    socket.addEventListener('close', () => setTimeout(connect, 1000));
  }};
  connect();
}})();
</script>
"""


def client_script(ws_port: int) -> str:
    """Return the live reload snippet injected into served HTML."""
    return _CLIENT_SCRIPT.format(ws_port=ws_port)


class _ReloadHandler(SimpleHTTPRequestHandler):
    """Static file handler for the built site.

    Directories resolve to their ``index.html``; anything else that does not
    exist (including directories without an index) gets a 404, using the
    site's own ``404.html`` when it has one. HTML is sent with the live reload
    script appended to the body.

    Attributes:
        reload_script: Snippet added to HTML responses.
    """

    reload_script = client_script(3001)

    def end_headers(self):
        self.send_header("Cache-Control", "no-store")
        super().end_headers()

    def log_message(self, format, *args):
        logger.debug("%s %s", self.address_string(), format % args)

    def list_directory(self, path):
        return self._serve_404()

    def _with_script(self, html: str) -> bytes:
        head, marker, tail = html.rpartition("</body>")
        if marker:
            html = f"{head}{self.reload_script}{marker}{tail}"
        else:
            html = f"{html}{self.reload_script}"
        return html.encode("utf-8")

    def _write_html(self, page: Path, status: int = 200) -> None:
        body = self._with_script(page.read_text(encoding="utf-8"))
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _serve_404(self):
        page = Path(self.directory) / "404.html"
        if page.is_file():
            self._write_html(page, status=404)
        else:
            self.send_error(404, "File not found")
        return None

    def send_head(self):
        target = Path(self.translate_path(self.path))
        if target.is_dir():
            target = target / "index.html"
        if not target.is_file():
            return self._serve_404()
        if target.suffix == ".html":
            self._write_html(target)
            return None
        return super().send_head()


class DevServer:
    """Serves the destination directory and pushes reloads to browsers.

    Attributes:
        host: Interface both servers bind to.
        http_port: Port of the HTTP server.
        ws_port: Port of the websocket server (``http_port + 1`` by default).
        directory: Directory being served; None until ``start``.
    """

    def __init__(self, host: str = "localhost", port: int = 3000, ws_port: int | None = None):
        self.host = host
        self.http_port = port
        self.ws_port = ws_port if ws_port is not None else port + 1
        self.directory: Path | None = None
        self._reload_script = client_script(self.ws_port)
        self._httpd: ThreadingHTTPServer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()
        self._start_lock = threading.Lock()

    @property
    def started(self) -> bool:
        return self.directory is not None

    def start(self, directory: Path) -> bool:
        """Start serving ``directory`` unless already serving.

        Returns:
            True when this call started the server.
        """
        with self._start_lock:
            if self.started:
                return False
            self.directory = directory
            for target in (self._start_http, self._start_ws):
                threading.Thread(target=target, daemon=True).start()
            return True

    def publish(self, directory: Path) -> None:
        """Show a freshly built site: start on the first call, reload afterwards."""
        if not self.start(directory):
            self.reload()

    def reload(self) -> None:
        """Tell connected browsers to reload the full page."""
        message = json.dumps(RELOAD_MESSAGE)
        asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    def serve_forever(self) -> None:  # pragma: no cover - integration path
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Stopping server")
        finally:
            self.stop()

    def stop(self) -> None:
        if self._httpd is not None:
            self._httpd.shutdown()
            self._httpd = None
        self._loop.call_soon_threadsafe(self._loop.stop)

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler_cls = type(
            "_SessionReloadHandler", (_ReloadHandler,), {"reload_script": self._reload_script}
        )
        handler = functools.partial(handler_cls, directory=str(self.directory))
        self._httpd = ThreadingHTTPServer((self.host, self.http_port), handler)
        logger.info("Serving %s at http://%s:%d", self.directory, self.host, self.http_port)
        self._httpd.serve_forever()

    def _start_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            logger.error("Live reload unavailable on port %d: %s", self.ws_port, exc)

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, self.host, self.ws_port):
            await asyncio.Future()

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    async def _async_broadcast(self, message: str):
        for ws in list(self._ws_clients):
            try:
                await ws.send(message)
            except Exception as exc:
                logger.debug("Dropping live reload client: %s", exc)
                self._ws_clients.discard(ws)

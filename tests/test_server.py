import asyncio
import io
import json
import time

from ingot.server import DevServer, _ReloadHandler


def make_handler(path, directory):
    handler = _ReloadHandler.__new__(_ReloadHandler)
    handler.path = path
    handler.directory = str(directory)
    handler.command = "GET"
    handler.request_version = "HTTP/1.1"
    handler.server_version = ""
    handler.sys_version = ""
    handler._headers_buffer = []
    handler.headers = {}
    handler.rfile = io.BytesIO(b"")
    handler.wfile = io.BytesIO()
    handler.calls = {"responses": [], "errors": []}
    handler.send_response = lambda code, message=None: handler.calls["responses"].append(code)
    handler.send_header = lambda *args, **kwargs: None
    handler.end_headers = lambda: None
    handler.send_error = lambda code, message=None: handler.calls["errors"].append(code)
    return handler


def test_async_broadcast_tracks_stale_clients():
    server = DevServer()

    class GoodWS:
        def __init__(self):
            self.messages = []

        async def send(self, msg):
            self.messages.append(msg)

    class BadWS:
        async def send(self, msg):
            raise RuntimeError("fail")

    good = GoodWS()
    bad = BadWS()
    server._ws_clients = {good, bad}
    asyncio.run(server._async_broadcast("hello"))
    assert good.messages == ["hello"]
    assert bad not in server._ws_clients
    assert good in server._ws_clients


def test_dev_server_port_defaults():
    server = DevServer(port=5055)
    assert server.http_port == 5055
    assert server.ws_port == 5056
    assert server.host == "localhost"

    explicit = DevServer(port=5055, ws_port=6000)
    assert explicit.ws_port == 6000
    assert f":{explicit.ws_port}" in explicit._reload_script


def test_start_is_idempotent(monkeypatch, tmp_path):
    calls = []
    monkeypatch.setattr(DevServer, "_start_http", lambda self: calls.append("http"))
    monkeypatch.setattr(DevServer, "_start_ws", lambda self: calls.append("ws"))

    server = DevServer()
    assert not server.started
    assert server.start(tmp_path) is True
    assert server.start(tmp_path / "other") is False
    assert server.started
    assert server.directory == tmp_path

    # The threads run the patched methods; give them a moment
    for _ in range(100):
        if len(calls) == 2:
            break
        time.sleep(0.01)
    assert sorted(calls) == ["http", "ws"]


def test_publish_starts_then_reloads(monkeypatch, tmp_path):
    events = []
    monkeypatch.setattr(DevServer, "_start_http", lambda self: None)
    monkeypatch.setattr(DevServer, "_start_ws", lambda self: None)
    monkeypatch.setattr(DevServer, "reload", lambda self: events.append("reload"))

    server = DevServer()
    server.publish(tmp_path)
    assert events == []
    assert server.directory == tmp_path

    server.publish(tmp_path)
    server.publish(tmp_path)
    assert events == ["reload", "reload"]


def test_reload_broadcasts_full_reload(monkeypatch):
    scheduled = []

    def fake_run(coro, loop):
        scheduled.append(loop)
        asyncio.run(coro)

    monkeypatch.setattr("ingot.server.asyncio.run_coroutine_threadsafe", fake_run)
    sent = []

    async def fake_broadcast(message):
        sent.append(json.loads(message))

    server = DevServer()
    server._async_broadcast = fake_broadcast
    server.reload()
    assert scheduled == [server._loop]
    assert sent == [{"type": "reload"}]


def test_ws_handler_registers_until_closed():
    server = DevServer()
    seen = {}

    class FakeWS:
        async def wait_closed(self):
            seen["during"] = set(server._ws_clients)

    ws = FakeWS()
    asyncio.run(server._ws_handler(ws))
    assert seen["during"] == {ws}
    assert ws not in server._ws_clients


def test_reload_handler_injects_script(tmp_path):
    (tmp_path / "index.html").write_text("<html><body>home</body></html>", encoding="utf-8")
    handler = make_handler("/index.html", tmp_path)

    result = _ReloadHandler.send_head(handler)

    assert result is None
    assert handler.calls["responses"] == [200]
    body = handler.wfile.getvalue().decode()
    assert body.index("location.reload()") < body.index("</body>")
    assert "home" in body


def test_send_head_serves_directory_index(tmp_path):
    posts = tmp_path / "posts"
    posts.mkdir()
    (posts / "index.html").write_text("<html><body>index</body></html>", encoding="utf-8")
    handler = make_handler("/posts/", tmp_path)

    result = _ReloadHandler.send_head(handler)

    assert result is None
    assert handler.calls["responses"] == [200]
    assert b"reload" in handler.wfile.getvalue()


def test_head_request_sends_headers_without_body(tmp_path):
    (tmp_path / "index.html").write_text("<html><body>home</body></html>", encoding="utf-8")
    handler = make_handler("/index.html", tmp_path)
    handler.command = "HEAD"
    headers = {}
    handler.send_header = lambda key, value: headers.__setitem__(key, value)

    result = _ReloadHandler.send_head(handler)

    assert result is None
    assert handler.calls["responses"] == [200]
    assert handler.wfile.getvalue() == b""
    assert headers["Content-Type"] == "text/html; charset=utf-8"
    assert int(headers["Content-Length"]) > len("<html><body>home</body></html>")


def test_html_without_body_tag_gets_script_appended(tmp_path):
    (tmp_path / "frag.html").write_text("<p>fragment</p>", encoding="utf-8")
    handler = make_handler("/frag.html", tmp_path)

    _ReloadHandler.send_head(handler)

    body = handler.wfile.getvalue().decode()
    assert body.startswith("<p>fragment</p>")
    assert "WebSocket" in body


def test_serve_404_uses_custom_page(tmp_path):
    (tmp_path / "404.html").write_text("<html><body>oops</body></html>", encoding="utf-8")
    handler = make_handler("/missing", tmp_path)

    result = _ReloadHandler._serve_404(handler)

    assert result is None
    assert handler.calls["responses"] == [404]
    body = handler.wfile.getvalue().decode()
    assert "oops" in body
    assert "reload" in body


def test_send_head_missing_file_triggers_404(tmp_path):
    handler = make_handler("/missing.html", tmp_path)

    result = _ReloadHandler.send_head(handler)

    assert result is None
    assert handler.calls["errors"] == [404]


def test_directory_without_index_returns_404(tmp_path):
    posts = tmp_path / "posts"
    posts.mkdir()
    (posts / "note.txt").write_text("hi", encoding="utf-8")
    handler = make_handler("/posts/", tmp_path)

    result = _ReloadHandler.send_head(handler)

    assert result is None
    assert handler.calls["errors"] == [404]


def test_list_directory_is_never_exposed(tmp_path):
    handler = make_handler("/", tmp_path)
    assert _ReloadHandler.list_directory(handler, str(tmp_path)) is None
    assert handler.calls["errors"] == [404]

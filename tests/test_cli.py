import yaml
from click.testing import CliRunner

from ingot import __version__
from ingot.cli import cli


class Answer:
    def __init__(self, value):
        self.value = value

    def ask(self):
        return self.value


def new_project(runner, tmp_path):
    project = tmp_path / "mysite"
    result = runner.invoke(cli, ["new", str(project)])
    assert result.exit_code == 0, result.output
    return project


def test_cli_new_scaffolds_project(tmp_path):
    runner = CliRunner()
    target = new_project(runner, tmp_path)
    assert (target / "ingot.yaml").exists()
    assert (target / "src" / "index.md").exists()
    assert (target / "src" / "blog" / "first-post.md").exists()
    assert (target / "lib" / "layouts" / "base.html").exists()
    assert (target / "lib" / "data" / "site.yaml").exists()
    assert (target / "lib" / "assets" / "styles" / "main.css").exists()

    # fails on non-empty directory
    result = runner.invoke(cli, ["new", str(target)])
    assert result.exit_code != 0
    assert "non-empty" in result.output


def test_cli_build_success(monkeypatch, tmp_path):
    runner = CliRunner()
    project = new_project(runner, tmp_path)
    monkeypatch.chdir(project)

    result = runner.invoke(cli, ["build"])

    assert result.exit_code == 0, result.output
    assert "Build success" in result.output
    assert (project / "build" / "index.html").exists()
    assert (project / "build" / "sitemap.xml").exists()


def test_cli_build_failure_reports_stage_and_plugin(monkeypatch, tmp_path):
    runner = CliRunner()
    project = new_project(runner, tmp_path)
    (project / "src" / "broken.md").write_text("---\nlayout: missing\n---\n# Oops\n", encoding="utf-8")
    monkeypatch.chdir(project)

    result = runner.invoke(cli, ["build"])

    assert result.exit_code == 1
    assert "Build failed" in result.output
    assert "Stage: plugin" in result.output
    assert "Plugin: layouts" in result.output
    assert "Template not found" in result.output
    assert not (project / "build").exists()


def test_cli_reports_configuration_errors(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Stage: config" in result.output


def test_cli_start_wires_session(monkeypatch, tmp_path):
    runner = CliRunner()
    project = new_project(runner, tmp_path)
    monkeypatch.chdir(project)
    called = {}

    class DummyServer:
        def __init__(self, host, port, ws_port):
            called["server"] = (host, port, ws_port)

    class DummySession:
        def __init__(self, builder, server):
            called["mode"] = builder.config.mode.value
            called["plugins"] = builder.pipeline.names

        def run(self):
            called["ran"] = True

    monkeypatch.setattr("ingot.server.DevServer", DummyServer)
    monkeypatch.setattr("ingot.develop.DevelopmentSession", DummySession)

    result = runner.invoke(cli, ["start", "--port", "5050"], catch_exceptions=False)

    assert result.exit_code == 0
    assert called["server"] == ("localhost", 5050, 5051)
    assert called["mode"] == "development"
    assert "sitemap" not in called["plugins"]
    assert called["ran"]


def test_cli_serve(monkeypatch, tmp_path):
    runner = CliRunner()
    project = new_project(runner, tmp_path)
    monkeypatch.chdir(project)
    called = {}

    class DummyServer:
        def __init__(self, host, port, ws_port):
            called["ports"] = (port, ws_port)

        def start(self, directory):
            called["directory"] = directory
            return True

        def serve_forever(self):
            called["served"] = True

    monkeypatch.setattr("ingot.server.DevServer", DummyServer)

    result = runner.invoke(cli, ["serve"])
    assert result.exit_code != 0
    assert "ingot build" in result.output

    (project / "build").mkdir()
    result = runner.invoke(cli, ["serve", "--port", "5050", "--ws-port", "6060"], catch_exceptions=False)
    assert result.exit_code == 0
    assert called["ports"] == (5050, 6060)
    assert called["directory"] == (project / "build").resolve()
    assert called["served"]


def test_cli_post_creates_draft(monkeypatch, tmp_path):
    runner = CliRunner()
    project = new_project(runner, tmp_path)
    monkeypatch.chdir(project)
    monkeypatch.setattr("ingot.cli.questionary.text", lambda *a, **k: Answer("My New Post"))
    monkeypatch.setattr("ingot.cli.questionary.confirm", lambda *a, **k: Answer(False))

    result = runner.invoke(cli, ["post"], catch_exceptions=False)

    assert result.exit_code == 0
    target = project / "src" / "blog" / "my-new-post.md"
    text = target.read_text(encoding="utf-8")
    assert "title: My New Post" in text
    assert "draft: true" in text
    assert "layout: blog-post.html" in text

    result = runner.invoke(cli, ["post"])
    assert result.exit_code != 0
    assert "already exists" in result.output


def test_cli_post_keeps_title_exactly(monkeypatch, tmp_path):
    runner = CliRunner()
    project = new_project(runner, tmp_path)
    monkeypatch.chdir(project)
    monkeypatch.setattr("ingot.cli.questionary.text", lambda *a, **k: Answer("C++: Tips #1"))
    monkeypatch.setattr("ingot.cli.questionary.confirm", lambda *a, **k: Answer(True))

    result = runner.invoke(cli, ["post"], catch_exceptions=False)

    assert result.exit_code == 0
    (target,) = (project / "src" / "blog").glob("*-c-tips-1.md")
    _, frontmatter, body = target.read_text(encoding="utf-8").split("---\n", 2)
    data = yaml.safe_load(frontmatter)
    assert data["title"] == "C++: Tips #1"
    assert data["draft"] is True
    assert target.name == f"{data['date'].isoformat()}-c-tips-1.md"
    assert body.strip() == "# C++: Tips #1"


def test_cli_post_cancelled(monkeypatch, tmp_path):
    runner = CliRunner()
    project = new_project(runner, tmp_path)
    monkeypatch.chdir(project)
    monkeypatch.setattr("ingot.cli.questionary.text", lambda *a, **k: Answer(None))

    result = runner.invoke(cli, ["post"])
    assert result.exit_code != 0


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert __version__ in result.output


def test_main_invokes_cli(monkeypatch):
    import ingot.cli as cli_mod

    called = {}
    monkeypatch.setattr(cli_mod, "cli", lambda: called.setdefault("ran", True))
    cli_mod.main()
    assert called["ran"]


def test_module_main_entrypoint():
    from ingot.__main__ import main

    assert callable(main)

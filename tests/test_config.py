import pytest

from ingot.config import BuildMode, load_config, read_config_file
from ingot.errors import ConfigurationError


@pytest.fixture
def project(tmp_path):
    (tmp_path / "src").mkdir()
    return tmp_path


@pytest.mark.parametrize(
    "environ, expected",
    [
        ({}, BuildMode.PRODUCTION),
        ({"INGOT_ENV": "development"}, BuildMode.DEVELOPMENT),
        ({"INGOT_ENV": " Development "}, BuildMode.DEVELOPMENT),
        ({"INGOT_ENV": "production"}, BuildMode.PRODUCTION),
        ({"INGOT_ENV": "staging"}, BuildMode.PRODUCTION),
    ],
)
def test_mode_from_environment(environ, expected):
    assert BuildMode.from_environ(environ) is expected


def test_defaults(project):
    config = load_config(project, environ={})
    assert config.mode is BuildMode.PRODUCTION
    assert config.is_production
    assert config.source == project.resolve() / "src"
    assert config.destination == project.resolve() / "build"
    assert config.staging_dir == project.resolve() / "build.staging"
    assert config.layouts == project.resolve() / "lib" / "layouts"
    assert config.data_files["site"] == project.resolve() / "lib" / "data" / "site.yaml"
    assert config.port == 3000
    assert config.ws_port == 3001
    assert config.include_drafts is False


def test_development_includes_drafts(project):
    config = load_config(project, environ={"INGOT_ENV": "development"})
    assert config.mode is BuildMode.DEVELOPMENT
    assert config.include_drafts is True


def test_explicit_mode_wins_over_environment(project):
    config = load_config(project, mode=BuildMode.DEVELOPMENT, environ={"INGOT_ENV": "production"})
    assert config.mode is BuildMode.DEVELOPMENT


def test_config_file_overrides(project):
    (project / "content").mkdir()
    (project / "ingot.yaml").write_text(
        "source: content\n"
        "destination: public\n"
        "port: 8000\n"
        "ws_port: 9000\n"
        "drafts: true\n"
        "watch: content\n"
        "debounce: 0.5\n",
        encoding="utf-8",
    )
    config = load_config(project, environ={})
    assert config.source.name == "content"
    assert config.destination.name == "public"
    assert config.port == 8000
    assert config.ws_port == 9000
    assert config.include_drafts is True
    assert config.watch_paths == (project.resolve() / "content",)
    assert config.debounce == 0.5


def test_port_override_moves_websocket_port(project):
    (project / "ingot.yaml").write_text("port: 8000\nws_port: 9000\n", encoding="utf-8")
    config = load_config(project, environ={}, port=5050)
    assert config.port == 5050
    assert config.ws_port == 5051

    config = load_config(project, environ={}, port=5050, ws_port=6000)
    assert config.ws_port == 6000


@pytest.mark.parametrize(
    "content",
    [
        "port: [unclosed\n",
        "- just\n- a list\n",
        "port: not-a-number\n",
        "port: true\n",
        "source: ''\n",
        "debounce: soon\n",
        "data: [site.yaml]\n",
        "watch: 5\n",
        "watch: [src, 3]\n",
    ],
)
def test_invalid_configuration(project, content):
    (project / "ingot.yaml").write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError) as excinfo:
        load_config(project, environ={})
    assert excinfo.value.stage == "config"


def test_missing_source_directory(tmp_path):
    with pytest.raises(ConfigurationError, match="source directory"):
        load_config(tmp_path, environ={})


def test_read_config_file_without_file(tmp_path):
    config = read_config_file(tmp_path)
    assert config["source"] == "src"
    assert config["port"] == 3000

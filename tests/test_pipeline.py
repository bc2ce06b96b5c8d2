import pytest

from ingot.content import FileRecord
from ingot.errors import ConfigurationError, PluginError
from ingot.pipeline import Pipeline, compose


class RecordingPlugin:
    def __init__(self, name, calls, fail=False, replace=False):
        self.name = name
        self.calls = calls
        self.fail = fail
        self.replace = replace

    def apply(self, files, metadata):
        self.calls.append(self.name)
        if self.fail:
            raise RuntimeError(f"{self.name} exploded")
        metadata.setdefault("seen", []).append(self.name)
        if self.replace:
            return {"replaced.txt": FileRecord(b"new")}
        return files


def test_plugins_run_in_declared_order():
    calls = []
    pipeline = compose([RecordingPlugin(n, calls) for n in ["a", "b", "c", "d"]])
    metadata = {}
    pipeline.run({}, metadata)
    assert calls == ["a", "b", "c", "d"]
    assert metadata["seen"] == ["a", "b", "c", "d"]
    assert pipeline.names == ["a", "b", "c", "d"]


def test_failure_stops_pipeline_and_names_plugin():
    calls = []
    pipeline = compose(
        [
            RecordingPlugin("first", calls),
            RecordingPlugin("broken", calls, fail=True),
            RecordingPlugin("never", calls),
        ]
    )
    with pytest.raises(PluginError) as excinfo:
        pipeline.run({"a.md": FileRecord(b"x")}, {})
    assert calls == ["first", "broken"]
    assert excinfo.value.plugin == "broken"
    assert excinfo.value.stage == "plugin"
    assert isinstance(excinfo.value.original_error, RuntimeError)
    assert "broken" in excinfo.value.message
    assert "RuntimeError: broken exploded" in excinfo.value.message


def test_returned_map_feeds_next_plugin():
    seen = {}

    class Inspect:
        name = "inspect"

        def apply(self, files, metadata):
            seen["keys"] = sorted(files)

    calls = []
    pipeline = compose([RecordingPlugin("swap", calls, replace=True), Inspect()])
    result = pipeline.run({"old.txt": FileRecord(b"old")}, {})
    assert seen["keys"] == ["replaced.txt"]
    # A None return keeps the current map
    assert sorted(result) == ["replaced.txt"]


def test_compose_rejects_empty_and_invalid_entries():
    with pytest.raises(ConfigurationError):
        compose([])

    class NoApply:
        name = "nope"

    with pytest.raises(ConfigurationError) as excinfo:
        compose([NoApply()])
    assert "entry 0" in excinfo.value.message


def test_pipeline_is_immutable_sequence():
    calls = []
    plugins = [RecordingPlugin("a", calls)]
    pipeline = Pipeline(plugins)
    plugins.append(RecordingPlugin("b", calls))
    pipeline.run({}, {})
    assert calls == ["a"]

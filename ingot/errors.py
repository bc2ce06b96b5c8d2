"""Error types raised while configuring and building an Ingot site.

Every failure that can end a build pass derives from BuildError and carries the
stage it happened in, so the CLI can tell the user where things went wrong.

Classes:
    BuildError: Base class with stage, message and original error.
    ConfigurationError: Invalid project configuration, detected at startup.
    SourceError: A source file could not be read or parsed.
    PluginError: A plugin failed during a pass.
    OutputError: The destination tree could not be written or published.
    WatchError: The file watcher could not observe a path (never fatal).
"""

from __future__ import annotations


class BuildError(Exception):
    """Error during a site build with stage context.

    Attributes:
        message: Human-readable error message.
        stage: Name of the stage that failed ("config", "read", "plugin", "write").
        original_error: The original exception that was caught, if any.
    """

    stage = "build"

    def __init__(self, message: str, original_error: Exception | None = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)

    def describe(self) -> str:
        """Return a one-line description including the stage."""
        return f"[{self.stage}] {self.message}"


class ConfigurationError(BuildError):
    """Invalid or missing project configuration."""

    stage = "config"


class SourceError(BuildError):
    """A source file could not be loaded into the file map.

    Attributes:
        path: Source-relative path of the offending file.
    """

    stage = "read"

    def __init__(
        self, path: str, message: str, original_error: Exception | None = None
    ):
        self.path = path
        super().__init__(f"{path}: {message}", original_error)


class PluginError(BuildError):
    """A plugin raised while transforming the file map.

    Attributes:
        plugin: Name of the plugin that failed.
    """

    stage = "plugin"

    def __init__(self, plugin: str, original_error: Exception):
        self.plugin = plugin
        super().__init__(
            f"Plugin '{plugin}' failed: {_format_error_message(original_error)}",
            original_error,
        )


class OutputError(BuildError):
    """The destination directory could not be written."""

    stage = "write"


class WatchError(BuildError):
    """A watched path could not be observed."""

    stage = "watch"


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    # Handle common Jinja2/template errors
    if error_type == "TemplateSyntaxError":
        lineno = getattr(exc, "lineno", None)
        return f"Template syntax error on line {lineno}: {error_msg}"
    if error_type == "TemplateNotFound":
        return f"Template not found: {error_msg}"
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"

    return f"{error_type}: {error_msg}"

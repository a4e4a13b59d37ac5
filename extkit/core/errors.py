"""
Exception taxonomy for the extension engine.

Registration errors are raised before the registry is touched. Install and
uninstall callback errors are re-raised as the original exception, so they
do not appear here.
"""


class ExtensionError(Exception):
    """Base class for errors raised by the engine."""


class ExtensionAlreadyRegisteredError(ExtensionError):
    """An extension with the same name is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Extension already registered: {name}")


class ExtensionNotFoundError(ExtensionError):
    """No extension with this name is registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Extension not found: {name}")


class IncompatibleVersionError(ExtensionError):
    """Host version is outside the extension's supported range."""


class DependencyError(ExtensionError):
    """A declared dependency is missing or not installed."""

    def __init__(self, extension: str, dependency: str, message: str):
        self.extension = extension
        self.dependency = dependency
        super().__init__(message)


class HookAbortError(ExtensionError):
    """Raised when a before hook aborts execution."""

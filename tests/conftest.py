"""
Pytest fixtures for testing.

Provides:
- In-memory event bus that records notifications
- Extension manager wired to that bus
- Standalone hook manager with a context set
- Factory fixture for throw-away extensions
"""

from types import SimpleNamespace
from typing import Any, Awaitable, Callable

import pytest

from extkit.core.hooks.manager import HookManager
from extkit.core.interfaces.events import InMemoryEventBus
from extkit.core.plugins.manager import ExtensionManager
from extkit.core.plugins.registry import Extension, ExtensionInfo

HOST_VERSION = "1.0.0"

Callback = Callable[..., Awaitable[Any]]


class StubExtension(Extension):
    """Extension whose callbacks are supplied by the test."""

    def __init__(
        self,
        name: str = "stub",
        version: str = "1.0.0",
        *,
        on_install: Callback | None = None,
        on_uninstall: Callback | None = None,
        on_update_config: Callback | None = None,
        **info: Any,
    ):
        self._info = ExtensionInfo(name=name, version=version, **info)
        self._on_install = on_install
        self._on_uninstall = on_uninstall
        self._on_update_config = on_update_config
        self.calls: list[tuple[str, Any]] = []
        self.context = None

    @property
    def info(self) -> ExtensionInfo:
        return self._info

    async def install(self, context, config) -> None:
        self.calls.append(("install", dict(config)))
        self.context = context
        if self._on_install:
            await self._on_install(context, config)

    async def uninstall(self, context) -> None:
        self.calls.append(("uninstall", None))
        if self._on_uninstall:
            await self._on_uninstall(context)

    async def update_config(self, context, config) -> None:
        self.calls.append(("update_config", dict(config)))
        if self._on_update_config:
            await self._on_update_config(context, config)


class MinimalExtension(Extension):
    """Extension that only implements the required callbacks."""

    info = ExtensionInfo(name="minimal", version="0.1.0")

    async def install(self, context, config) -> None:
        pass


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def manager(event_bus: InMemoryEventBus) -> ExtensionManager:
    return ExtensionManager(event_bus, version=HOST_VERSION)


@pytest.fixture
def context() -> SimpleNamespace:
    """Stand-in context for dispatcher-only tests."""
    return SimpleNamespace(version=HOST_VERSION)


@pytest.fixture
def hooks(context: SimpleNamespace) -> HookManager:
    return HookManager(context)


@pytest.fixture
def extension_factory() -> Callable[..., StubExtension]:
    """Build StubExtension instances: extension_factory("name", dependencies=[...])."""
    def build(name: str = "stub", version: str = "1.0.0", **kwargs: Any) -> StubExtension:
        return StubExtension(name, version, **kwargs)
    return build


def returning(value: Any) -> Callable[[Any, Any], Awaitable[Any]]:
    """Async handler that records nothing and returns value."""
    async def handler(ctx, data):
        return value
    return handler

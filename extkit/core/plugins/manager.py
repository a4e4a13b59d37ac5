"""
Extension manager: registry, lifecycle and context propagation.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping
import logging

from extkit.core.config import get_settings
from extkit.core.errors import (
    DependencyError,
    ExtensionAlreadyRegisteredError,
    ExtensionNotFoundError,
    IncompatibleVersionError,
)
from extkit.core.hooks.manager import CORE_OWNER, HookManager, HookRegistration, HookStats
from extkit.core.interfaces.events import EventEmitter, ExtensionEvents
from extkit.utils.logging import get_extension_logger
from extkit.utils.timezone import utc_now
from extkit.utils.versions import in_range, is_valid_version

from .context import ScopedHooks, SharedContext
from .registry import Extension, ExtensionConfig, ExtensionEntry, ExtensionState

logger = logging.getLogger(__name__)


@dataclass
class ManagerStats:
    total_extensions: int = 0
    installed_extensions: int = 0
    failed_extensions: int = 0
    extensions_by_state: dict[ExtensionState, int] = field(
        default_factory=lambda: {state: 0 for state in ExtensionState}
    )
    hook_stats: HookStats = field(default_factory=HookStats)


class ExtensionManager:
    """
    Registers extensions, drives their lifecycle and owns the hook manager.

    State machine per extension:
        REGISTERED -> INSTALLING -> INSTALLED | FAILED
        INSTALLED  -> UNINSTALLING -> (removed)

    Example usage:
    ```python
    bus = InMemoryEventBus()
    manager = ExtensionManager(bus, version="1.4.0")
    manager.set_service("client", client)

    await manager.register(RecordingExtension(), {"format": "ogg"})
    results = await manager.execute_hook("beforeCall", {"target": target})

    await manager.destroy()
    ```
    """

    def __init__(
        self,
        events: EventEmitter,
        version: str | None = None,
        services: Mapping[str, Any] | None = None,
    ):
        version = version or get_settings().host_version
        if not is_valid_version(version):
            raise ValueError(f"Host version must be dotted-numeric: {version!r}")

        self._events = events
        self._version = version
        self._services: dict[str, Any] = dict(services or {})
        self._extensions: dict[str, ExtensionEntry] = {}
        self._contexts: dict[str, SharedContext] = {}
        self._hooks = HookManager(on_remove=self._untrack_hook)
        self._hooks.set_context_factory(self._context_for)
        self._hooks.set_context(self._context_for(CORE_OWNER))

        logger.info(f"ExtensionManager initialized (host version {version})")

    @property
    def version(self) -> str:
        return self._version

    @property
    def hook_manager(self) -> HookManager:
        return self._hooks

    # ============================================================
    # HOST SERVICES
    # ============================================================

    def set_service(self, name: str, instance: Any) -> None:
        """Set (or clear with None) a host service and refresh the context."""
        self._services[name] = instance
        self._refresh_contexts()

    def set_services(self, **instances: Any) -> None:
        """Set several host services with a single context refresh."""
        self._services.update(instances)
        self._refresh_contexts()

    def _refresh_contexts(self) -> None:
        self._contexts.clear()
        self._hooks.set_context(self._context_for(CORE_OWNER))

    def _context_for(self, owner: str) -> SharedContext:
        """Current context for an owner; rebuilt after any service change."""
        context = self._contexts.get(owner)
        if context is None:
            context = self._contexts[owner] = self._create_context(owner)
        return context

    def _create_context(self, owner: str) -> SharedContext:
        # Bound to this entry: a context kept past unregister cannot
        # register hooks, even if the name is registered again.
        entry = self._extensions.get(owner)

        def track(hook_id: str) -> None:
            if entry is not None:
                entry.hook_ids.append(hook_id)

        def is_active() -> bool:
            return owner == CORE_OWNER or self._extensions.get(owner) is entry

        return SharedContext(
            events=self._events,
            services=MappingProxyType(dict(self._services)),
            hooks=ScopedHooks(self._hooks, owner, on_register=track, is_active=is_active),
            logger=get_extension_logger(owner),
            version=self._version,
        )

    def _untrack_hook(self, registration: HookRegistration) -> None:
        entry = self._extensions.get(registration.owner)
        if entry is not None and registration.id in entry.hook_ids:
            entry.hook_ids.remove(registration.id)

    def _emit(self, event_type: str, data: dict[str, Any]) -> None:
        try:
            self._events.emit(event_type, data)
        except Exception:
            logger.exception(f"Failed to emit {event_type}")

    # ============================================================
    # LIFECYCLE
    # ============================================================

    async def register(
        self,
        extension: Extension,
        config: ExtensionConfig | None = None,
    ) -> None:
        """
        Register an extension and install it unless disabled.

        Raises:
            ExtensionAlreadyRegisteredError: Name already taken.
            IncompatibleVersionError: Host version outside the bounds.
            DependencyError: A dependency is missing or not installed.
            Exception: Whatever ``install`` raised (entry stays FAILED).
        """
        info = extension.info
        name = info.name

        if name in self._extensions:
            raise ExtensionAlreadyRegisteredError(name)

        self._check_version(extension)
        self._check_dependencies(extension)

        config = config or {}
        enabled = config.get("enabled")
        merged: ExtensionConfig = {
            **info.default_config,
            **config,
            "enabled": True if enabled is None else enabled,
        }

        self._extensions[name] = ExtensionEntry(extension=extension, config=merged)
        self._contexts.pop(name, None)
        logger.info(f"Registered extension: {name} v{info.version}")

        if merged["enabled"]:
            await self.install(name)

    async def install(self, name: str) -> None:
        """
        Install a registered extension.

        Used by ``register`` and for extensions registered with
        ``enabled=False``. Re-raises the install callback's error.
        """
        entry = self._extensions.get(name)
        if entry is None:
            raise ExtensionNotFoundError(name)

        if entry.state == ExtensionState.INSTALLED:
            logger.warning(f"Extension already installed: {name}")
            return

        entry.state = ExtensionState.INSTALLING
        entry.error = None

        try:
            await entry.extension.install(self._create_context(name), entry.config)
        except Exception as e:
            entry.state = ExtensionState.FAILED
            entry.error = e
            logger.exception(f"Extension installation failed: {name}")
            self._emit(ExtensionEvents.ERROR, {"name": name, "error": e})
            raise

        entry.state = ExtensionState.INSTALLED
        entry.installed_at = utc_now()
        logger.info(f"Installed extension: {name}")
        self._emit(
            ExtensionEvents.INSTALLED,
            {"name": name, "info": entry.extension.info},
        )

    async def unregister(self, name: str) -> None:
        """
        Uninstall and remove an extension.

        Hooks owned by the extension are removed and the entry deleted even
        when ``uninstall`` raises; that error is re-raised afterwards.
        """
        entry = self._extensions.get(name)
        if entry is None:
            raise ExtensionNotFoundError(name)

        uninstall_error: Exception | None = None
        try:
            entry.state = ExtensionState.UNINSTALLING
            await entry.extension.uninstall(self._create_context(name))
        except Exception as e:
            uninstall_error = e
            logger.exception(f"Extension uninstallation failed: {name}")
        finally:
            self._hooks.unregister_by_owner(name)
            entry.hook_ids.clear()
            del self._extensions[name]
            self._contexts.pop(name, None)
            logger.info(f"Unregistered extension: {name}")
            self._emit(ExtensionEvents.UNREGISTERED, {"name": name})

        if uninstall_error is not None:
            raise uninstall_error

    async def update_config(self, name: str, config: ExtensionConfig) -> None:
        """Shallow-merge config into the extension's and notify it."""
        entry = self._extensions.get(name)
        if entry is None:
            raise ExtensionNotFoundError(name)

        entry.config = {**entry.config, **config}
        await entry.extension.update_config(self._create_context(name), entry.config)

        logger.info(f"Updated extension config: {name}")
        self._emit(
            ExtensionEvents.CONFIG_UPDATED,
            {"name": name, "config": dict(entry.config)},
        )

    async def execute_hook(self, name: str, data: Any = None) -> list[Any]:
        """Run a hook. See ``HookManager.execute``."""
        return await self._hooks.execute(name, data)

    async def destroy(self) -> None:
        """Unregister every extension and clear all hooks. Safe to repeat."""
        logger.info("Destroying ExtensionManager")

        for name in list(self._extensions):
            try:
                await self.unregister(name)
            except Exception:
                logger.exception(f"Error unregistering extension {name}")

        self._hooks.clear()
        logger.info("ExtensionManager destroyed")

    # ============================================================
    # VALIDATION
    # ============================================================

    def _check_version(self, extension: Extension) -> None:
        info = extension.info

        if not in_range(self._version, min_version=info.min_version):
            raise IncompatibleVersionError(
                f"Extension {info.name} requires host version >= "
                f"{info.min_version} (current: {self._version})"
            )
        if not in_range(self._version, max_version=info.max_version):
            raise IncompatibleVersionError(
                f"Extension {info.name} requires host version <= "
                f"{info.max_version} (current: {self._version})"
            )

    def _check_dependencies(self, extension: Extension) -> None:
        info = extension.info

        for dep in info.dependencies:
            dep_entry = self._extensions.get(dep)
            if dep_entry is None:
                raise DependencyError(
                    info.name,
                    dep,
                    f"Extension {info.name} requires extension: {dep}",
                )
            if dep_entry.state != ExtensionState.INSTALLED:
                raise DependencyError(
                    info.name,
                    dep,
                    f"Extension {info.name} requires extension {dep} "
                    f"to be installed (state: {dep_entry.state.value})",
                )

    # ============================================================
    # INTROSPECTION
    # ============================================================

    def get(self, name: str) -> ExtensionEntry | None:
        return self._extensions.get(name)

    def has(self, name: str) -> bool:
        return name in self._extensions

    def get_all(self) -> dict[str, ExtensionEntry]:
        return dict(self._extensions)

    def get_stats(self) -> ManagerStats:
        stats = ManagerStats(
            total_extensions=len(self._extensions),
            hook_stats=self._hooks.get_stats(),
        )
        for entry in self._extensions.values():
            stats.extensions_by_state[entry.state] += 1
            if entry.state == ExtensionState.INSTALLED:
                stats.installed_extensions += 1
            elif entry.state == ExtensionState.FAILED:
                stats.failed_extensions += 1
        return stats

"""
Context handed to extension callbacks and hook handlers.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

from extkit.core.errors import ExtensionNotFoundError
from extkit.core.hooks.manager import HookCondition, HookHandler, HookManager, HookOptions
from extkit.core.interfaces.events import EventEmitter


class ScopedHooks:
    """
    Hook interface bound to one owner.

    Every registration made through it is attributed to ``owner`` so the
    manager can sweep it when that extension is removed. Once ``is_active``
    reports false (the owner was unregistered) new registrations raise
    ``ExtensionNotFoundError``.
    """

    def __init__(
        self,
        hooks: HookManager,
        owner: str,
        on_register: Callable[[str], None] | None = None,
        is_active: Callable[[], bool] | None = None,
    ):
        self._hooks = hooks
        self._on_register = on_register
        self._is_active = is_active
        self.owner = owner

    def register(
        self,
        name: str,
        handler: HookHandler,
        options: HookOptions | None = None,
        *,
        priority: int | None = None,
        once: bool | None = None,
        condition: HookCondition | None = None,
    ) -> str:
        if self._is_active is not None and not self._is_active():
            raise ExtensionNotFoundError(self.owner)

        hook_id = self._hooks.register(
            name,
            handler,
            options,
            priority=priority,
            once=once,
            condition=condition,
            owner=self.owner,
        )
        if self._on_register:
            self._on_register(hook_id)
        return hook_id

    def unregister(self, hook_id: str) -> bool:
        return self._hooks.unregister(hook_id)

    async def execute(self, name: str, data: Any = None) -> list[Any]:
        return await self._hooks.execute(name, data)


@dataclass(frozen=True)
class SharedContext:
    """
    Everything an extension can reach.

    A context is never edited in place: when a host service changes the
    manager builds new ones. During dispatch each handler gets the current
    context of the extension that registered it, so it sees the latest
    services and its own registrations stay attributed to that extension.
    """
    events: EventEmitter
    services: Mapping[str, Any]
    hooks: ScopedHooks
    logger: Any
    version: str

    def service(self, name: str) -> Any:
        """Get a host service, or None if the host has not set it yet."""
        return self.services.get(name)

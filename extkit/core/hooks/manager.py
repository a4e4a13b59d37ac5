"""
Hook manager for extension lifecycle events.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar, Union
from dataclasses import dataclass, field
from enum import IntEnum
import inspect
import itertools
import logging

if TYPE_CHECKING:
    from extkit.core.plugins.context import SharedContext

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

HookHandler = Callable[["SharedContext", Any], Union[Awaitable[Any], Any]]
HookCondition = Callable[["SharedContext", Any], bool]
ContextFactory = Callable[[str], "SharedContext"]
RemovalListener = Callable[["HookRegistration"], None]

CORE_OWNER = "core"


class HookPriority(IntEnum):
    """Hook execution priority (higher runs first). Any int is accepted."""
    HIGHEST = 1000
    HIGH = 500
    NORMAL = 0
    LOW = -500
    LOWEST = -1000


def _always(context: Any, data: Any) -> bool:
    return True


@dataclass
class HookOptions:
    """Per-registration execution options."""
    priority: int = HookPriority.NORMAL
    once: bool = False  # Run only once then unregister
    condition: HookCondition = _always


@dataclass
class HookRegistration:
    """Registered hook information."""
    id: str
    name: str
    handler: HookHandler
    options: HookOptions
    owner: str = CORE_OWNER  # Extension that registered this


@dataclass
class HookStats:
    """Snapshot of the registry."""
    total_hooks: int = 0
    hook_names: list[str] = field(default_factory=list)
    total_handlers: int = 0
    handlers_by_owner: dict[str, int] = field(default_factory=dict)


class HookManager:
    """
    Priority-ordered hook dispatcher.

    Each hook name maps to a list of registrations kept sorted by priority,
    highest first, with ties in registration order. Every handler is called
    as ``handler(context, data)``. The context is the latest one set, or,
    when a context factory is installed, one built for the handler's owner
    so that hooks registered through it are attributed to that owner.

    Dispatch rules:
    - a registration whose condition is false (or raises) is skipped
    - a handler that raises is logged and contributes no result
    - a handler returning exactly ``False`` stops the pass
    - once-handlers are removed after the pass in which they succeeded

    Example usage:
    ```python
    hooks = HookManager()
    hooks.set_context(context)

    @hooks.on("beforeCall", priority=HookPriority.HIGH)
    async def check_blocklist(ctx, data):
        return data["target"] not in BLOCKED

    results = await hooks.execute("beforeCall", {"target": "sip:bob@host"})
    ```
    """

    def __init__(
        self,
        context: SharedContext | None = None,
        on_remove: RemovalListener | None = None,
    ):
        self._hooks: dict[str, list[HookRegistration]] = {}
        self._ids = itertools.count()
        self._context = context
        self._context_factory: ContextFactory | None = None
        self._on_remove = on_remove

    @property
    def context(self) -> SharedContext | None:
        """The context handed to handlers (always the latest one set)."""
        return self._context

    def set_context(self, context: SharedContext | None) -> None:
        self._context = context

    def set_context_factory(self, factory: ContextFactory | None) -> None:
        """
        Build each handler's context from its owner.

        Takes precedence over ``set_context`` during dispatch. The factory
        is called per invocation, so it must return current services.
        """
        self._context_factory = factory

    def set_removal_listener(self, listener: RemovalListener | None) -> None:
        """Called with every registration removed, whatever the reason."""
        self._on_remove = listener

    def context_for(self, owner: str) -> SharedContext | None:
        if self._context_factory is not None:
            return self._context_factory(owner)
        return self._context

    def _removed(self, registration: HookRegistration) -> None:
        if self._on_remove is not None:
            self._on_remove(registration)

    def register(
        self,
        name: str,
        handler: HookHandler,
        options: HookOptions | None = None,
        *,
        priority: int | None = None,
        once: bool | None = None,
        condition: HookCondition | None = None,
        owner: str = CORE_OWNER,
    ) -> str:
        """
        Register a hook handler.

        Keyword options override the matching fields of ``options``.

        Returns:
            The new registration id.
        """
        base = options or HookOptions()
        resolved = HookOptions(
            priority=base.priority if priority is None else priority,
            once=base.once if once is None else once,
            condition=condition or base.condition or _always,
        )

        hook_id = f"hook-{next(self._ids)}"
        registration = HookRegistration(
            id=hook_id,
            name=name,
            handler=handler,
            options=resolved,
            owner=owner,
        )

        hooks = self._hooks.setdefault(name, [])
        hooks.append(registration)
        # Stable sort keeps registration order within a priority
        hooks.sort(key=lambda h: -h.options.priority)

        logger.debug(
            f"Registered hook: {name} (id={hook_id}, owner={owner}, "
            f"priority={resolved.priority})"
        )
        return hook_id

    def on(
        self,
        name: str,
        *,
        priority: int = HookPriority.NORMAL,
        once: bool = False,
        condition: HookCondition | None = None,
        owner: str = CORE_OWNER,
    ) -> Callable[[F], F]:
        """Decorator to register a hook handler."""
        def decorator(func: F) -> F:
            self.register(
                name,
                func,
                priority=priority,
                once=once,
                condition=condition,
                owner=owner,
            )
            return func
        return decorator

    def unregister(self, hook_id: str) -> bool:
        """Unregister a single registration by id."""
        for name, hooks in self._hooks.items():
            for i, hook in enumerate(hooks):
                if hook.id == hook_id:
                    del hooks[i]
                    if not hooks:
                        del self._hooks[name]
                    logger.debug(f"Unregistered hook: {hook_id}")
                    self._removed(hook)
                    return True
        return False

    def unregister_by_owner(self, owner: str) -> int:
        """Remove every registration made by ``owner``. Returns the count."""
        count = 0
        for name in list(self._hooks):
            kept = [h for h in self._hooks[name] if h.owner != owner]
            removed = [h for h in self._hooks[name] if h.owner == owner]
            count += len(removed)
            if kept:
                self._hooks[name] = kept
            else:
                del self._hooks[name]
            for hook in removed:
                self._removed(hook)

        if count:
            logger.debug(f"Unregistered {count} hooks for owner: {owner}")
        return count

    async def execute(self, name: str, data: Any = None) -> list[Any]:
        """
        Run all handlers for a hook, highest priority first.

        Never raises for handler or condition failures.

        Returns:
            Handler return values in execution order.
        """
        hooks = self._hooks.get(name)
        if not hooks:
            return []

        if self._context is None and self._context_factory is None:
            logger.warning(f"Hook executed before context was set: {name}")
            return []

        logger.debug(f"Executing hook: {name} ({len(hooks)} handlers)")

        results: list[Any] = []
        to_remove: list[str] = []

        # Registrations made or removed mid-pass apply from the next pass
        for hook in tuple(hooks):
            context = self.context_for(hook.owner)

            try:
                if not hook.options.condition(context, data):
                    logger.debug(f"Hook condition not met, skipping: {hook.id}")
                    continue
            except Exception:
                logger.exception(f"Hook condition error: {hook.id} ({hook.owner})")
                continue

            try:
                result = hook.handler(context, data)
                if inspect.isawaitable(result):
                    result = await result
            except Exception:
                logger.exception(f"Hook handler error: {hook.id} ({hook.owner})")
                continue

            results.append(result)

            if hook.options.once:
                to_remove.append(hook.id)

            if result is False:
                logger.debug(f"Hook returned False, stopping propagation: {hook.id}")
                break

        for hook_id in to_remove:
            self.unregister(hook_id)

        return results

    def get(self, name: str) -> list[HookRegistration]:
        """Registrations for a hook, in execution order."""
        return list(self._hooks.get(name, []))

    def get_all(self) -> dict[str, list[HookRegistration]]:
        """All registrations keyed by hook name."""
        return {name: list(hooks) for name, hooks in self._hooks.items()}

    def has(self, name: str) -> bool:
        """Check if any hooks are registered for name."""
        return bool(self._hooks.get(name))

    def count(self, name: str) -> int:
        """Number of handlers registered for name."""
        return len(self._hooks.get(name, []))

    def clear(self) -> None:
        """Remove every registration. Ids are never reused."""
        removed = [h for hooks in self._hooks.values() for h in hooks]
        self._hooks.clear()
        for hook in removed:
            self._removed(hook)
        logger.debug("All hooks cleared")

    def get_stats(self) -> HookStats:
        stats = HookStats(
            total_hooks=len(self._hooks),
            hook_names=list(self._hooks),
        )
        for hooks in self._hooks.values():
            stats.total_handlers += len(hooks)
            for hook in hooks:
                stats.handlers_by_owner[hook.owner] = (
                    stats.handlers_by_owner.get(hook.owner, 0) + 1
                )
        return stats

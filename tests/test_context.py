"""
Tests for the shared context and host service propagation.
"""

import pytest

from extkit.core.errors import ExtensionNotFoundError
from extkit.core.interfaces.events import InMemoryEventBus
from extkit.core.plugins.context import SharedContext
from extkit.core.plugins.manager import ExtensionManager

from conftest import returning


@pytest.mark.asyncio
async def test_install_receives_scoped_context(manager: ExtensionManager, extension_factory, event_bus):
    ext = extension_factory("recorder")
    await manager.register(ext)

    ctx = ext.context
    assert isinstance(ctx, SharedContext)
    assert ctx.hooks.owner == "recorder"
    assert ctx.version == "1.0.0"
    assert ctx.events is event_bus


def test_services_start_unset(manager: ExtensionManager):
    ctx = manager.hook_manager.context

    assert ctx.service("client") is None
    assert dict(ctx.services) == {}


def test_initial_services(event_bus: InMemoryEventBus):
    client = object()
    manager = ExtensionManager(event_bus, version="2.0", services={"client": client, "media": None})

    assert manager.hook_manager.context.service("client") is client
    assert manager.hook_manager.context.service("media") is None


def test_set_service_replaces_context(manager: ExtensionManager):
    before = manager.hook_manager.context
    client = object()

    manager.set_service("client", client)

    after = manager.hook_manager.context
    assert after is not before
    assert after.service("client") is client
    assert before.service("client") is None


def test_set_service_to_none(manager: ExtensionManager):
    manager.set_service("client", object())
    manager.set_service("client", None)

    assert manager.hook_manager.context.service("client") is None


def test_set_services(manager: ExtensionManager):
    client, media = object(), object()

    manager.set_services(client=client, media=media)

    ctx = manager.hook_manager.context
    assert ctx.service("client") is client
    assert ctx.service("media") is media


def test_services_are_read_only(manager: ExtensionManager):
    with pytest.raises(TypeError):
        manager.hook_manager.context.services["client"] = object()


@pytest.mark.asyncio
async def test_handlers_see_latest_services(manager: ExtensionManager, extension_factory):
    seen = []

    async def handler(ctx, data):
        seen.append(ctx.service("client"))

    async def on_install(context, config):
        context.hooks.register("callStarted", handler)

    await manager.register(extension_factory("a", on_install=on_install))

    await manager.execute_hook("callStarted")
    manager.set_service("client", "connected")
    await manager.execute_hook("callStarted")

    assert seen == [None, "connected"]


@pytest.mark.asyncio
async def test_service_change_mid_pass(manager: ExtensionManager):
    seen = []

    async def swaps(ctx, data):
        manager.set_service("client", "replaced")
        seen.append(ctx.service("client"))

    async def observes(ctx, data):
        seen.append(ctx.service("client"))

    manager.hook_manager.register("tick", swaps, priority=1)
    manager.hook_manager.register("tick", observes, priority=0)

    await manager.execute_hook("tick")

    # The running handler keeps its context; the next one sees the new one
    assert seen == [None, "replaced"]


@pytest.mark.asyncio
async def test_scoped_unregister_removes_id_from_entry(manager: ExtensionManager, extension_factory):
    registered = {}

    async def on_install(context, config):
        registered["keep"] = context.hooks.register("a", returning(1))
        drop = context.hooks.register("b", returning(2))
        context.hooks.unregister(drop)

    await manager.register(extension_factory("x", on_install=on_install))

    assert manager.get("x").hook_ids == [registered["keep"]]
    assert manager.hook_manager.has("b") is False


@pytest.mark.asyncio
async def test_scoped_execute(manager: ExtensionManager, extension_factory):
    manager.hook_manager.register("lookup", returning("answer"))
    results = {}

    async def on_install(context, config):
        results["lookup"] = await context.hooks.execute("lookup", {"q": 1})

    await manager.register(extension_factory("x", on_install=on_install))

    assert results["lookup"] == ["answer"]


@pytest.mark.asyncio
async def test_context_logger_is_bound_to_extension(manager: ExtensionManager, extension_factory):
    await manager.register(extension_factory("recorder"))

    logger = manager.get("recorder").extension.context.logger
    logger.info("hello", call_id="c-1")  # must not raise


@pytest.mark.asyncio
async def test_hooks_registered_later_through_context_are_owned(manager: ExtensionManager, extension_factory):
    ext = extension_factory("late")
    await manager.register(ext)

    hook_id = ext.context.hooks.register("afterInstall", returning(1))

    assert manager.get("late").hook_ids == [hook_id]
    await manager.unregister("late")
    assert manager.hook_manager.has("afterInstall") is False


@pytest.mark.asyncio
async def test_hooks_registered_by_handlers_belong_to_extension(manager: ExtensionManager, extension_factory):
    async def on_call_started(ctx, data):
        ctx.hooks.register("callEnded", returning("ended"))

    async def on_install(context, config):
        context.hooks.register("callStarted", on_call_started)

    await manager.register(extension_factory("rec", on_install=on_install))
    await manager.execute_hook("callStarted")

    [registration] = manager.hook_manager.get("callEnded")
    assert registration.owner == "rec"
    assert registration.id in manager.get("rec").hook_ids

    await manager.unregister("rec")

    assert manager.hook_manager.has("callEnded") is False
    assert manager.hook_manager.has("callStarted") is False


@pytest.mark.asyncio
async def test_handler_context_sees_services_and_owner(manager: ExtensionManager, extension_factory):
    seen = []

    async def handler(ctx, data):
        seen.append((ctx.hooks.owner, ctx.service("client")))

    async def on_install(context, config):
        context.hooks.register("callStarted", handler)

    await manager.register(extension_factory("rec", on_install=on_install))
    manager.set_service("client", "connected")
    await manager.execute_hook("callStarted")

    assert seen == [("rec", "connected")]


@pytest.mark.asyncio
async def test_kept_context_rejects_registration_after_unregister(manager: ExtensionManager, extension_factory):
    ext = extension_factory("rec")
    await manager.register(ext)
    kept = ext.context

    await manager.unregister("rec")

    with pytest.raises(ExtensionNotFoundError):
        kept.hooks.register("callEnded", returning(1))
    assert manager.hook_manager.has("callEnded") is False


@pytest.mark.asyncio
async def test_kept_context_rejected_after_name_is_reused(manager: ExtensionManager, extension_factory):
    first = extension_factory("rec")
    await manager.register(first)
    kept = first.context
    await manager.unregister("rec")

    await manager.register(extension_factory("rec"))

    with pytest.raises(ExtensionNotFoundError):
        kept.hooks.register("callEnded", returning(1))
    assert manager.get("rec").hook_ids == []


@pytest.mark.asyncio
async def test_fired_once_handler_leaves_hook_ids(manager: ExtensionManager, extension_factory):
    async def on_install(context, config):
        context.hooks.register("callStarted", returning("first"), once=True)

    await manager.register(extension_factory("x", on_install=on_install))

    assert len(manager.get("x").hook_ids) == 1
    assert await manager.execute_hook("callStarted") == ["first"]
    assert manager.get("x").hook_ids == []


@pytest.mark.asyncio
async def test_clear_empties_hook_ids(manager: ExtensionManager, extension_factory):
    async def on_install(context, config):
        context.hooks.register("callStarted", returning(1))

    await manager.register(extension_factory("x", on_install=on_install))
    manager.hook_manager.clear()

    assert manager.get("x").hook_ids == []

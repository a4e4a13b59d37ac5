"""
Extension discovery and loading from package entry points.

Extensions shipped as separate distributions advertise themselves in
their own pyproject.toml:
```toml
[project.entry-points."extkit.extensions"]
recording = "my_recording_ext:RecordingExtension"
```
"""
from __future__ import annotations

from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any
import logging

from extkit.core.config import get_settings

from .registry import Extension

if TYPE_CHECKING:
    from .manager import ExtensionManager

logger = logging.getLogger(__name__)


def discover_extensions(group: str | None = None) -> list[type[Extension]]:
    """
    Load extension classes advertised under an entry point group.

    Entry points that fail to import, or that do not point at an
    ``Extension`` subclass, are logged and skipped.
    """
    group = group or get_settings().entry_point_group
    discovered: list[type[Extension]] = []

    for ep in entry_points(group=group):
        try:
            target = ep.load()
        except Exception:
            logger.exception(f"Error loading extension entry point {ep.name}")
            continue

        if not (isinstance(target, type) and issubclass(target, Extension)):
            logger.error(f"Entry point {ep.name} is not an Extension subclass: {target!r}")
            continue

        discovered.append(target)
        logger.debug(f"Discovered extension: {ep.name} ({target.__name__})")

    return discovered


def order_by_dependencies(extensions: list[Extension]) -> list[Extension]:
    """
    Put each extension after the dependencies found in the same batch.

    Input order is kept otherwise. Extensions whose dependencies can never
    be satisfied from the batch keep their relative order at the end;
    registering them reports the problem.
    """
    pending = list(extensions)
    batch_names = {ext.info.name for ext in pending}
    placed: set[str] = set()
    ordered: list[Extension] = []

    progress = True
    while pending and progress:
        progress = False
        for ext in list(pending):
            deps = [d for d in ext.info.dependencies if d in batch_names]
            if all(d in placed for d in deps):
                ordered.append(ext)
                placed.add(ext.info.name)
                pending.remove(ext)
                progress = True

    return ordered + pending


async def load_extensions(
    manager: ExtensionManager,
    group: str | None = None,
    config: dict[str, dict[str, Any]] | None = None,
) -> list[str]:
    """
    Discover, instantiate and register extensions.

    Args:
        manager: Manager to register into
        group: Entry point group (defaults to settings.entry_point_group)
        config: Configuration dict keyed by extension name
                (defaults to settings.extensions)

    Returns:
        Names of extensions registered without error
    """
    config = get_settings().extensions if config is None else config
    loaded: list[str] = []

    instances: list[Extension] = []
    for extension_cls in discover_extensions(group):
        try:
            instances.append(extension_cls())
        except Exception:
            logger.exception(f"Error instantiating extension {extension_cls.__name__}")

    for extension in order_by_dependencies(instances):
        name = extension.info.name
        try:
            await manager.register(extension, config.get(name))
        except Exception:
            logger.exception(f"Error registering extension {name}")
            continue

        loaded.append(name)
        logger.info(f"Loaded extension from entry point: {name}")

    return loaded
